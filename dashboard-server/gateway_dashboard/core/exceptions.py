"""Dashboard exception hierarchy and RFC 7807 *Problem Details* model."""
from __future__ import annotations

from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class DashboardError(Exception):
    """Base class for every error raised by the dashboard core."""


class GatewayError(DashboardError):
    """The gateway answered with a non-2xx status or an unusable body.

    Attributes
    ----------
    status_code : int | None
        HTTP status returned by the gateway, ``None`` for transport failures.
    message : str
        Human-readable explanation, taken from the gateway's ``error`` field
        when it provides one.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class GatewayUnavailable(GatewayError):
    """The gateway could not be reached at all (connect error, timeout...)."""


class SubmissionInProgress(DashboardError):
    """A message submission is already in flight."""


class MalformedInputError(DashboardError, ValueError):
    """Operator input could not be parsed (e.g. invalid JSON in the value field)."""


class ProblemDetail(BaseModel):
    """Data model that serialises to RFC 7807 JSON.

    Attributes
    ----------
    type : str
        A URI reference that identifies the problem type.
    title : str
        A short human-readable summary of the problem type.
    status : int
        The HTTP status code.
    detail : str | None
        A human-readable explanation specific to this occurrence.
    instance : str
        A URI reference that identifies the specific occurrence.
    """

    type: str = Field(default="about:blank", examples=["/malformed-input"])
    title: str
    status: int = Field(..., ge=400, le=599)
    detail: Optional[str] = None
    instance: str = Field(default_factory=lambda: f"urn:uuid:{uuid4()}")

    model_config = {"json_schema_extra": {"required": ["type", "title", "status"]}}


class ProblemDetailException(Exception):
    """Raise inside routers to trigger a 7807 response."""

    def __init__(
        self,
        status_code: int,
        title: str,
        type_: str = "about:blank",
        detail: Optional[str] = None,
    ) -> None:
        super().__init__(detail or title)
        self.problem = ProblemDetail(
            status=status_code,
            title=title,
            type=type_,
            detail=detail,
        )
