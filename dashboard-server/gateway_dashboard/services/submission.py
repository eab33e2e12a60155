"""Operator-initiated test message submission.

State machine: ``Idle -> Submitting -> Idle``. While a submission is in flight
the form's submit control is disabled and a second submission is refused;
whatever happens afterwards the control is enabled again.
"""
from __future__ import annotations

import json
import logging
from collections import Counter
from typing import Optional

from gateway_dashboard.core.exceptions import (
    GatewayError,
    MalformedInputError,
    SubmissionInProgress,
)
from gateway_dashboard.models.messages import (
    Notification,
    OutboundMessage,
    SubmissionOutcome,
    SubmissionRequest,
    SubmissionResult,
)
from gateway_dashboard.services.credentials import CredentialStore
from gateway_dashboard.services.display import DisplaySurface
from gateway_dashboard.services.gateway_client import GatewayClient

logger = logging.getLogger(__name__)


def format_json_value(text: str) -> str:
    """Pretty-print *text* as JSON with a 2-space indent.

    Blank input is returned untouched; invalid JSON raises
    `MalformedInputError` and the caller keeps the original text.
    """
    if not text.strip():
        return text
    try:
        parsed = json.loads(text)
    except ValueError as exc:
        raise MalformedInputError(f"Invalid JSON: {exc}") from exc
    return json.dumps(parsed, indent=2, ensure_ascii=False)


class SubmissionHandler:
    def __init__(
        self,
        client: GatewayClient,
        credentials: CredentialStore,
        surface: DisplaySurface,
    ) -> None:
        self._client = client
        self._credentials = credentials
        self._surface = surface
        self._submitting = False
        self.stats: Counter = Counter()

    @property
    def submitting(self) -> bool:
        return self._submitting

    def resolve_credential(self, supplied: Optional[str] = None) -> Optional[str]:
        """Cached key first; otherwise persist and use *supplied* if non-empty."""
        cached = self._credentials.get()
        if cached:
            return cached
        if supplied and supplied.strip():
            key = supplied.strip()
            self._credentials.set(key)
            return key
        return None

    async def submit(self, req: SubmissionRequest) -> SubmissionResult:
        """Send the operator's form to the gateway.

        Raises
        ------
        SubmissionInProgress
            If another submission has not finished yet.
        """
        if self._submitting:
            raise SubmissionInProgress("A message submission is already in progress")
        self._submitting = True
        self._surface.update_form(topic=req.topic, key=req.key, value=req.value, submitEnabled=False)
        try:
            result = await self._send(req)
        finally:
            self._surface.update_form(submitEnabled=True)
            self._submitting = False
        self.stats[result.outcome.value] += 1
        if result.notification is not None:
            self._surface.notify(result.notification)
        return result

    async def _send(self, req: SubmissionRequest) -> SubmissionResult:
        msg = OutboundMessage(topic=req.topic, key=req.key, value=req.value, headers={})

        try:
            api_key = self.resolve_credential(req.apiKey)
            if api_key is None and not req.allowAnonymous:
                return SubmissionResult(outcome=SubmissionOutcome.CREDENTIAL_REQUIRED)
            await self._client.send_message(msg, api_key)
        except GatewayError as exc:
            logger.warning("Error sending message to %r: %s", msg.topic, exc.message)
            return SubmissionResult(
                outcome=SubmissionOutcome.FAILED,
                statusCode=exc.status_code,
                notification=Notification(level="error", message=f"Error sending message: {exc.message}"),
            )
        except Exception as exc:
            logger.exception("Error sending message to %r", msg.topic)
            return SubmissionResult(
                outcome=SubmissionOutcome.FAILED,
                notification=Notification(level="error", message=f"Error sending message: {exc}"),
            )

        logger.info("Message sent to topic %r", msg.topic)
        self._surface.update_form(topic="", key="", value="")
        return SubmissionResult(
            outcome=SubmissionOutcome.SENT,
            notification=Notification(level="success", message=f"Message sent successfully to topic: {msg.topic}"),
        )
