from __future__ import annotations

from fastapi.responses import JSONResponse


async def sdk_health() -> JSONResponse:
    from .server import _is_ready, get_app

    app = get_app()
    return JSONResponse(
        {
            "status": "ready" if _is_ready else "starting",
            "state": app.state.value if app else None,
        }
    )
