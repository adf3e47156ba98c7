"""
personium-auth-sample command-line interface.

Runs the development token endpoint or tries the sample plugin directly.
"""

import json
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import click
import uvicorn

from personium_auth_sample import __version__
from personium_auth_sample.core.config_manager import ConfigManager, PluginHostConfig
from personium_auth_sample.core.logging_config import setup_logging
from personium_auth_sample.exceptions import PluginError
from personium_auth_sample.host.adapter import GRANT_TYPE_PARAM, GrantStatus, run_grant
from personium_auth_sample.host.api import build_registry, create_app
from personium_auth_sample.host.registry import PluginRegistry
from personium_auth_sample.sample import SampleAuthPlugin

EXIT_AUTHENTICATED = 0
EXIT_REJECTED = 1
EXIT_BAD_REQUEST = 2


def _load_config(config: Optional[Path], overrides: Optional[Dict] = None) -> PluginHostConfig:
    try:
        return ConfigManager().load(
            config_file=str(config) if config else None,
            cli_overrides=overrides,
        )
    except (ValueError, FileNotFoundError) as e:
        raise click.ClickException(f"Invalid configuration: {e}")


def _setup_logging(config: PluginHostConfig) -> None:
    setup_logging(
        level=config.logging.level,
        format_type=config.logging.format,
        log_file=config.logging.file,
        rotation_size=config.logging.rotation_size,
        rotation_count=config.logging.rotation_count,
        module_levels=config.logging.module_levels,
    )


def _parse_params(params: Tuple[str, ...]) -> Dict[str, List[str]]:
    body: Dict[str, List[str]] = {}
    for param in params:
        key, sep, value = param.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got '{param}'", param_hint="--param")
        body.setdefault(key, []).append(value)
    return body


@click.group()
@click.version_option(version=__version__, prog_name="personium-auth-sample")
@click.pass_context
def cli(ctx):
    """
    Sample auth plugin for personium.

    Serve a local token endpoint or authenticate from the command line.
    """
    ctx.ensure_object(dict)


@cli.command()
@click.option("--host", default=None, help="Host to bind to [default: 127.0.0.1]")
@click.option("--port", default=None, type=int, help="Port to bind to [default: 9090]")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level",
)
def serve(host: Optional[str], port: Optional[int], config: Optional[Path], log_level: Optional[str]):
    """
    Start the development token endpoint.

    Examples:
        personium-auth-sample serve
        personium-auth-sample serve --port 8080 --log-level DEBUG
    """
    overrides: Dict = {}
    if host:
        overrides.setdefault("server", {})["host"] = host
    if port:
        overrides.setdefault("server", {})["port"] = port
    if log_level:
        overrides.setdefault("logging", {})["level"] = log_level.upper()

    host_config = _load_config(config, overrides)
    _setup_logging(host_config)

    try:
        app = create_app(host_config)
    except PluginError as e:
        click.echo(f"[ERROR] {e}", err=True)
        sys.exit(1)

    click.echo(f"Starting personium-auth-sample v{__version__}")
    click.echo(f"Token endpoint: http://{host_config.server.host}:{host_config.server.port}/{{cell}}/__token")

    try:
        uvicorn.run(
            app,
            host=host_config.server.host,
            port=host_config.server.port,
            log_level=host_config.logging.level.lower(),
            access_log=True,
        )
    except KeyboardInterrupt:
        click.echo("\nShutting down...")


@cli.command()
@click.option(
    "--param",
    "-p",
    "params",
    multiple=True,
    help="Form parameter as key=value (repeatable)",
)
@click.option("--locale", default=None, help="Locale of error messages (e.g. ja)")
def authenticate(params: Tuple[str, ...], locale: Optional[str]):
    """
    Run the sample plugin on one request and print the outcome.

    Exits 0 when authenticated, 1 when rejected, 2 on an invalid request.

    Example:
        personium-auth-sample authenticate -p sample_account=alice -p sample_password=personium
    """
    body = _parse_params(params)

    try:
        plugin = SampleAuthPlugin(locale=locale)
    except PluginError as e:
        raise click.ClickException(str(e))

    body.setdefault(GRANT_TYPE_PARAM, [plugin.grant_type()])

    registry = PluginRegistry()
    registry.register(plugin)
    outcome = run_grant(registry, body)

    click.echo(json.dumps(outcome.model_dump(exclude_none=True), indent=2, ensure_ascii=False))

    if outcome.status == GrantStatus.AUTHENTICATED:
        sys.exit(EXIT_AUTHENTICATED)
    if outcome.status == GrantStatus.REJECTED:
        sys.exit(EXIT_REJECTED)
    sys.exit(EXIT_BAD_REQUEST)


@cli.command("grant-types")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
def grant_types(config: Optional[Path]):
    """List grant types served by the configured plugins."""
    host_config = _load_config(config)

    try:
        registry = build_registry(host_config)
    except PluginError as e:
        raise click.ClickException(str(e))

    if not len(registry):
        click.echo("No plugins registered")
        return

    for plugin in registry:
        click.echo(f"{plugin.grant_type()}\t{plugin.account_type()}\t{type(plugin).__name__}")


def main():
    """Main entry point for CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
