from __future__ import annotations

from fastapi import APIRouter, Depends

from gateway_dashboard.api.dependencies import (
    get_credentials,
    get_gateway_client,
    get_surface,
    get_sync_loop,
)
from gateway_dashboard.models.view import DashboardView
from gateway_dashboard.services.credentials import CredentialStore
from gateway_dashboard.services.display import DisplaySurface
from gateway_dashboard.services.gateway_client import GatewayClient
from gateway_dashboard.services.sync_loop import SyncLoop

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardView)
def current_view(surface: DisplaySurface = Depends(get_surface)):
    return surface.snapshot()


@router.post("/dashboard/refresh", response_model=DashboardView)
async def refresh_now(
    loop: SyncLoop = Depends(get_sync_loop),
    surface: DisplaySurface = Depends(get_surface),
):
    """Run one refresh tick outside the regular schedule."""
    await loop.tick()
    return surface.snapshot()


@router.get("/credential")
def credential_status(credentials: CredentialStore = Depends(get_credentials)):
    """Whether an API key is cached; the key itself is never returned."""
    return {"present": credentials.present()}


@router.get("/health")
async def health(
    loop: SyncLoop = Depends(get_sync_loop),
    gateway: GatewayClient = Depends(get_gateway_client),
):
    return {
        "status": "ok",
        "syncLoopRunning": loop.running,
        "connectivity": loop.state.value,
        "gatewayHealthy": await gateway.health(),
    }
