"""
Token endpoint for local plugin development.

Mimics the cell token endpoint of a personium unit closely enough to try
auth plugins with curl. It reports the authenticated identity instead of
issuing tokens.

Author: personium.io contributors
Date: 2026-10-17
"""

import logging
import uuid
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs

from fastapi import APIRouter, FastAPI, Path, Request, status
from fastapi.responses import JSONResponse

from personium_auth_sample import __version__
from personium_auth_sample.core.config_manager import PluginHostConfig
from personium_auth_sample.core.logging_config import request_key_scope
from personium_auth_sample.exceptions import PluginError
from personium_auth_sample.host.adapter import run_grant, to_error_payload
from personium_auth_sample.host.registry import PluginRegistry

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def parse_form_body(raw: bytes) -> Dict[str, List[str]]:
    """Decode a form-urlencoded body, keeping repeated and blank values."""
    return parse_qs(raw.decode("utf-8", errors="replace"), keep_blank_values=True)


def build_registry(config: PluginHostConfig) -> PluginRegistry:
    """
    Create and populate a plugin registry from configuration.

    Raises:
        PluginLoadError: If an explicitly configured plugin fails to load
        ResourceLoadError: If its message catalog cannot be loaded
    """
    options = {}
    if config.messages.locale:
        options["locale"] = config.messages.locale
    if config.messages.resource != PluginHostConfig().messages.resource:
        options["messages_resource"] = config.messages.resource

    registry = PluginRegistry(plugin_options=options)
    for path in config.plugins:
        registry.load(path)
    if config.discover:
        registry.discover()
    return registry


def create_router(registry: PluginRegistry) -> APIRouter:
    """Create the router serving the token endpoint."""
    router = APIRouter()

    @router.post("/{cell}/__token", tags=["Token"])
    async def token(request: Request, cell: str = Path(..., description="Cell name")) -> JSONResponse:
        """Authenticate a grant request with the matching plugin."""
        with request_key_scope(request.headers.get("x-personium-requestkey") or str(uuid.uuid4())):
            content_type = request.headers.get("content-type", "")
            if not content_type.lower().startswith(FORM_CONTENT_TYPE):
                return JSONResponse(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    content={
                        "error": "invalid_request",
                        "error_description": f"Content-Type must be {FORM_CONTENT_TYPE}",
                    },
                )

            body = parse_form_body(await request.body())
            try:
                outcome = run_grant(registry, body)
            except PluginError as e:
                logger.error(f"Plugin failed for cell {cell}: {e}")
                return JSONResponse(status_code=e.status_code, content=to_error_payload(e))

            content = outcome.response_body()
            if outcome.authenticated:
                content["cell"] = cell
            return JSONResponse(status_code=outcome.status_code, content=content)

    @router.get("/health", tags=["Health"])
    async def health() -> Dict[str, Any]:
        return {"status": "ok", "grant_types": registry.grant_types()}

    return router


def create_app(
    config: Optional[PluginHostConfig] = None,
    registry: Optional[PluginRegistry] = None,
) -> FastAPI:
    """
    Create the development host application.

    Args:
        config: Host configuration (defaults when None)
        registry: Pre-built registry; built from config when None
    """
    config = config or PluginHostConfig()
    if registry is None:
        registry = build_registry(config)

    app = FastAPI(
        title="personium auth plugin host",
        version=__version__,
    )
    app.state.registry = registry
    app.include_router(create_router(registry))
    logger.info(f"Token endpoint ready for grant types: {', '.join(registry.grant_types()) or '(none)'}")
    return app
