"""
Integration tests for the command-line interface.
"""

import json

import pytest
from click.testing import CliRunner

from personium_auth_sample import __version__
from personium_auth_sample.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


class TestAuthenticateCommand:
    """Test the authenticate command."""

    def test_authenticated(self, runner):
        result = runner.invoke(cli, [
            "authenticate", "-p", "sample_account=alice", "-p", "sample_password=personium",
        ])

        assert result.exit_code == 0
        output = json.loads(result.output)
        assert output["status"] == "authenticated"
        assert output["account_name"] == "alice"
        assert output["account_type"] == "auth:sample"

    def test_rejected(self, runner):
        result = runner.invoke(cli, [
            "authenticate", "-p", "sample_account=alice", "-p", "sample_password=nope",
        ])

        assert result.exit_code == 1
        assert json.loads(result.output)["error"] == "invalid_grant"

    def test_invalid_request(self, runner):
        result = runner.invoke(cli, ["authenticate", "-p", "sample_account=alice"])

        assert result.exit_code == 2
        output = json.loads(result.output)
        assert output["error"] == "invalid_request"
        assert "sample_password" in output["error_description"]

    def test_japanese_messages(self, runner):
        result = runner.invoke(cli, ["authenticate", "--locale", "ja", "-p", "sample_password=personium"])

        assert result.exit_code == 2
        assert "必須" in json.loads(result.output)["error_description"]

    def test_bad_param_format(self, runner):
        result = runner.invoke(cli, ["authenticate", "-p", "no-equals-sign"])

        assert result.exit_code == 2
        assert "key=value" in result.output


class TestOtherCommands:
    """Test version and grant-types commands."""

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_grant_types(self, runner, tmp_path):
        config_file = tmp_path / "host.yaml"
        config_file.write_text(
            "plugins:\n  - personium_auth_sample.sample:SampleAuthPlugin\ndiscover: false\n"
        )

        result = runner.invoke(cli, ["grant-types", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "urn:x-personium:auth:sample\tauth:sample\tSampleAuthPlugin" in result.output

    def test_grant_types_none(self, runner, tmp_path):
        config_file = tmp_path / "host.yaml"
        config_file.write_text("discover: false\n")

        result = runner.invoke(cli, ["grant-types", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "No plugins registered" in result.output
