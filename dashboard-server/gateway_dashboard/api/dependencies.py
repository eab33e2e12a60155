"""Request-scoped accessors for the objects the lifespan puts on `app.state`."""
from fastapi import Request, status

from gateway_dashboard.core.exceptions import ProblemDetailException
from gateway_dashboard.services.credentials import CredentialStore
from gateway_dashboard.services.display import DisplaySurface
from gateway_dashboard.services.gateway_client import GatewayClient
from gateway_dashboard.services.submission import SubmissionHandler
from gateway_dashboard.services.sync_loop import SyncLoop


def _state(req: Request, name: str):
    obj = getattr(req.app.state, name, None)
    if obj is None:
        # Only happens if the lifespan has not run (e.g. app mounted without it)
        raise ProblemDetailException(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "Service Unavailable",
            detail=f"dashboard component '{name}' is not initialised",
        )
    return obj


def get_surface(req: Request) -> DisplaySurface:
    return _state(req, "surface")


def get_sync_loop(req: Request) -> SyncLoop:
    return _state(req, "sync_loop")


def get_submission_handler(req: Request) -> SubmissionHandler:
    return _state(req, "submission")


def get_gateway_client(req: Request) -> GatewayClient:
    return _state(req, "gateway")


def get_credentials(req: Request) -> CredentialStore:
    return _state(req, "credentials")
