from __future__ import annotations

from enum import Enum
from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field


class MessageRecord(BaseModel):
    """One entry of the gateway's recent-activity feed."""

    topic: str
    status: Literal["success", "error"]
    timestamp: str  # ISO-8601, as sent by the gateway


class OutboundMessage(BaseModel):
    """Body POSTed to the gateway's send endpoint."""

    topic: str
    key: str = ""
    value: str = ""
    headers: Dict[str, str] = Field(default_factory=dict)


class SubmissionRequest(BaseModel):
    """Form capture sent by the operator to `POST /api/v1/messages/send`."""

    topic: str = ""
    key: str = ""
    value: str = ""
    apiKey: Optional[str] = Field(default=None, description="Operator-supplied API key, persisted when used")
    allowAnonymous: bool = Field(default=False, description="Send without a bearer token when no key is known")


class FormatRequest(BaseModel):
    value: str = ""


class Notification(BaseModel):
    level: Literal["success", "error"]
    message: str


class SubmissionOutcome(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    CREDENTIAL_REQUIRED = "credential_required"


class SubmissionResult(BaseModel):
    outcome: SubmissionOutcome
    notification: Optional[Notification] = None
    statusCode: Optional[int] = None
