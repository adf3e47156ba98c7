"""
Integration tests for the development token endpoint.

Covers the token request scenarios for the sample grant type end to end:
form decoding, plugin dispatch and error rendering.
"""

import pytest
from fastapi.testclient import TestClient

from personium_auth_sample.core.config_manager import PluginHostConfig
from personium_auth_sample.host.api import build_registry, create_app, parse_form_body
from personium_auth_sample.host.registry import PluginRegistry
from personium_auth_sample.sample import SampleAuthPlugin

GRANT_TYPE = "urn:x-personium:auth:sample"
FORM = {"Content-Type": "application/x-www-form-urlencoded"}


@pytest.fixture
def app():
    """Create an app serving only the sample plugin."""
    registry = PluginRegistry()
    registry.register(SampleAuthPlugin())
    return create_app(registry=registry)


@pytest.fixture
def client(app):
    return TestClient(app)


def post_token(client, body, cell="testcell"):
    return client.post(f"/{cell}/__token", content=body, headers=FORM)


class TestTokenEndpoint:
    """Test token requests for the sample grant type."""

    def test_authenticated(self, client):
        response = post_token(
            client,
            f"grant_type={GRANT_TYPE}&sample_account=alice&sample_password=personium",
        )

        assert response.status_code == 200
        assert response.json() == {
            "account_name": "alice",
            "account_type": "auth:sample",
            "grant_type": GRANT_TYPE,
            "cell": "testcell",
        }

    def test_wrong_password(self, client):
        response = post_token(
            client,
            f"grant_type={GRANT_TYPE}&sample_account=alice&sample_password=wrong",
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_grant"

    def test_missing_password(self, client):
        response = post_token(client, f"grant_type={GRANT_TYPE}&sample_account=alice")

        assert response.status_code == 400
        assert response.json() == {
            "error": "invalid_request",
            "error_description": "Required parameter [sample_password] missing.",
        }

    def test_missing_account(self, client):
        response = post_token(client, f"grant_type={GRANT_TYPE}&sample_password=personium")

        assert response.status_code == 400
        assert "sample_account" in response.json()["error_description"]

    def test_empty_account(self, client):
        response = post_token(
            client,
            f"grant_type={GRANT_TYPE}&sample_account=&sample_password=personium",
        )

        assert response.status_code == 400
        assert "sample_account" in response.json()["error_description"]

    def test_repeated_account_uses_first(self, client):
        response = post_token(
            client,
            f"grant_type={GRANT_TYPE}&sample_account=a&sample_account=b&sample_password=personium",
        )

        assert response.status_code == 200
        assert response.json()["account_name"] == "a"

    def test_url_encoded_values(self, client):
        response = post_token(
            client,
            "grant_type=urn%3Ax-personium%3Aauth%3Asample&sample_account=j%C3%BCrgen+k&sample_password=personium",
        )

        assert response.status_code == 200
        assert response.json()["account_name"] == "jürgen k"

    def test_empty_body(self, client):
        response = post_token(client, "")

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_request"

    def test_unsupported_grant_type(self, client):
        response = post_token(client, "grant_type=password&username=a&password=b")

        assert response.status_code == 400
        assert response.json()["error"] == "unsupported_grant_type"

    def test_wrong_content_type(self, client):
        response = client.post(
            "/testcell/__token",
            json={"grant_type": GRANT_TYPE},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_request"

    @pytest.mark.parametrize("content_type", [
        "Application/X-WWW-Form-Urlencoded",
        "application/x-www-form-urlencoded; charset=UTF-8",
    ])
    def test_content_type_variants(self, client, content_type):
        """Test the media type is matched case-insensitively with parameters allowed."""
        response = client.post(
            "/testcell/__token",
            content=f"grant_type={GRANT_TYPE}&sample_account=alice&sample_password=personium",
            headers={"Content-Type": content_type},
        )

        assert response.status_code == 200
        assert response.json()["account_name"] == "alice"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "grant_types": [GRANT_TYPE]}


class TestLocalizedEndpoint:
    """Test error messages follow the configured locale."""

    def test_japanese_messages(self):
        config = PluginHostConfig(
            messages={"locale": "ja"},
            plugins=["personium_auth_sample.sample:SampleAuthPlugin"],
            discover=False,
        )
        client = TestClient(create_app(config))

        response = post_token(client, f"grant_type={GRANT_TYPE}&sample_account=alice")

        assert response.status_code == 400
        assert response.json()["error_description"].startswith("必須")


class TestBuildRegistry:
    """Test registry construction from configuration."""

    def test_explicit_plugins_only(self):
        config = PluginHostConfig(
            plugins=["personium_auth_sample.sample:SampleAuthPlugin"],
            discover=False,
        )

        registry = build_registry(config)

        assert registry.grant_types() == [GRANT_TYPE]

    def test_explicit_and_discovered(self):
        """Test discovery does not clash with explicitly configured plugins."""
        config = PluginHostConfig(plugins=["personium_auth_sample.sample:SampleAuthPlugin"])

        registry = build_registry(config)

        assert registry.grant_types() == [GRANT_TYPE]

    def test_no_plugins(self):
        registry = build_registry(PluginHostConfig(discover=False))

        assert len(registry) == 0


class TestParseFormBody:
    """Test form body decoding."""

    def test_keeps_blank_and_repeated_values(self):
        body = parse_form_body(b"a=&b=1&b=2")

        assert body == {"a": [""], "b": ["1", "2"]}

    def test_empty(self):
        assert parse_form_body(b"") == {}
