# server.py
import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from gateway_dashboard.api import dashboard as dashboard_router
from gateway_dashboard.api import messages as messages_router
from gateway_dashboard.core.config import Settings, settings
from gateway_dashboard.core.errors import install_exception_handlers
from gateway_dashboard.services.credentials import CredentialStore
from gateway_dashboard.services.display import DisplaySurface
from gateway_dashboard.services.gateway_client import GatewayClient
from gateway_dashboard.services.renderer import Renderer
from gateway_dashboard.services.submission import SubmissionHandler
from gateway_dashboard.services.sync_loop import SyncLoop
from gateway_dashboard.ws.manager import WSManager


def create_app(cfg: Optional[Settings] = None, http_client: Optional[httpx.AsyncClient] = None) -> FastAPI:
    cfg = cfg or settings

    # Lifespan owns every long-lived object; nothing is created at import time
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        surface = DisplaySurface()
        gateway = GatewayClient(cfg, client=http_client)
        credentials = CredentialStore(cfg.credential_file, cfg.credential_key)

        app.state.surface = surface
        app.state.gateway = gateway
        app.state.credentials = credentials
        app.state.submission = SubmissionHandler(gateway, credentials, surface)
        app.state.sync_loop = SyncLoop(gateway, Renderer(surface, limit=cfg.list_limit), cfg)

        # Shared WS manager and its push loop
        app.state.ws_manager = WSManager(surface, tick=cfg.ws_push_tick)
        push_task = asyncio.create_task(app.state.ws_manager.broadcast_view_loop())

        # First tick runs before we accept traffic, then every refresh interval
        await app.state.sync_loop.start()

        try:
            yield
        finally:
            await app.state.sync_loop.stop()
            push_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await push_task
            await gateway.aclose()

    app = FastAPI(
        title="Gateway Dashboard",
        version="1.0.0",
        lifespan=lifespan,
        openapi_url="/api/v1/openapi.json",
        docs_url="/api/v1/docs",
        redoc_url="/api/v1/redoc",
    )

    # --- CORS: allow the dashboard page during development ---
    allow_origins = cfg.cors_allow_origins or [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_exception_handlers(app)

    app.include_router(dashboard_router.router, prefix="/api/v1")
    app.include_router(messages_router.router, prefix="/api/v1")

    if cfg.metrics_enabled:
        from gateway_dashboard.api import metrics as metrics_router
        # metrics lives at /metrics (Prometheus convention)
        app.include_router(metrics_router.router, prefix="")

    # WebSocket route (note: not under /api/v1)
    @app.websocket("/ws/v1/stream")
    async def ws_stream(ws: WebSocket):
        ws_manager: WSManager = app.state.ws_manager
        await ws_manager.connect(ws)
        try:
            # No inbound messages; keep connection open
            while True:
                await ws.receive_text()
        except WebSocketDisconnect:
            ws_manager.disconnect(ws)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("server:app", host="0.0.0.0", port=8000, reload=True)
