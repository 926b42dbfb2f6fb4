"""HTTP receiver for wallet redirects on hosts without a custom URL scheme."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .health import sdk_health

if TYPE_CHECKING:
    from ..runtime.runner import DeepLinkApp

_is_ready = False
_app: DeepLinkApp | None = None


async def set_ready() -> None:
    global _is_ready
    _is_ready = True


def get_app() -> DeepLinkApp | None:
    return _app


async def receive_redirect(path: str, request: Request) -> JSONResponse:
    """Treat any GET as an inbound redirect URL and hand it to the router."""
    app = get_app()
    if app is None:
        return JSONResponse({"received": False, "detail": "not initialized"}, status_code=503)
    await app.router.on_incoming_url(str(request.url))
    return JSONResponse({"received": True, "path": path, "state": app.state.value})


def init_api(app: DeepLinkApp) -> FastAPI:
    global _app, _is_ready
    _app = app
    _is_ready = False

    api = FastAPI(title="phantom-deeplink-sdk redirect receiver")
    api.add_api_route("/sdk/health", sdk_health, methods=["GET"])
    api.add_api_route("/{path:path}", receive_redirect, methods=["GET"])
    return api
