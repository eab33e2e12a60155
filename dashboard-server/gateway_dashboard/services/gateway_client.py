from __future__ import annotations

from typing import Any, List, Optional

import httpx
from pydantic import ValidationError

from gateway_dashboard.core.config import Settings, settings as default_settings
from gateway_dashboard.core.exceptions import GatewayError, GatewayUnavailable
from gateway_dashboard.models.messages import MessageRecord, OutboundMessage
from gateway_dashboard.models.topics import TopicSummary


class GatewayClient:
    """
    Lazy async adapter around the gateway's REST endpoints.
    Avoids network work at construction time; every failure surfaces as a
    GatewayError (GatewayUnavailable for transport-level problems) so callers
    only need one except clause.
    """

    def __init__(
        self,
        cfg: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.cfg = cfg or default_settings
        self._client = client
        self._owns_client = client is None

    # ---------- connection ----------
    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.cfg.gateway_base_url,
                timeout=self.cfg.request_timeout_sec,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kw) -> httpx.Response:
        try:
            return await self._ensure_client().request(method, path, **kw)
        except httpx.HTTPError as exc:
            raise GatewayUnavailable(f"{method} {path} failed: {exc!r}") from exc

    async def _get_json(self, path: str) -> Any:
        resp = await self._request("GET", path)
        if not resp.is_success:
            raise GatewayError(f"HTTP error! status: {resp.status_code}", resp.status_code)
        try:
            return resp.json()
        except ValueError as exc:
            raise GatewayError(f"GET {path} returned invalid JSON", resp.status_code) from exc

    # ---------- read endpoints ----------
    async def fetch_metrics(self) -> Any:
        """Raw metrics body; normalisation is the caller's job."""
        return await self._get_json(self.cfg.metrics_path)

    async def fetch_messages(self, limit: int) -> List[MessageRecord]:
        data = await self._get_json(self.cfg.messages_path)
        items = _list_field(data, "messages")[:limit]
        try:
            return [MessageRecord.model_validate(m) for m in items]
        except ValidationError as exc:
            raise GatewayError(f"malformed messages payload: {exc.error_count()} error(s)") from exc

    async def fetch_topics(self, limit: int) -> List[TopicSummary]:
        data = await self._get_json(self.cfg.topics_path)
        items = _list_field(data, "topics")[:limit]
        try:
            return [TopicSummary.model_validate(t) for t in items]
        except ValidationError as exc:
            raise GatewayError(f"malformed topics payload: {exc.error_count()} error(s)") from exc

    async def health(self) -> bool:
        try:
            resp = await self._request("GET", self.cfg.health_path)
        except GatewayUnavailable:
            return False
        return resp.is_success

    # ---------- write endpoint ----------
    async def send_message(self, msg: OutboundMessage, api_key: Optional[str]) -> Any:
        """POST *msg* to the send endpoint and return the decoded success body.

        Raises
        ------
        GatewayError
            On a non-2xx answer, carrying the gateway's ``error`` text when present.
        GatewayUnavailable
            When the request never completed.
        """
        headers = {}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        resp = await self._request("POST", self.cfg.send_path, json=msg.model_dump(), headers=headers)
        try:
            body = resp.json()
        except ValueError:
            body = None
        if not resp.is_success:
            error = body.get("error") if isinstance(body, dict) else None
            raise GatewayError(error or f"HTTP error! status: {resp.status_code}", resp.status_code)
        return body


def _list_field(data: Any, key: str) -> list:
    if not isinstance(data, dict):
        raise GatewayError(f"expected a JSON object with '{key}'")
    items = data.get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise GatewayError(f"'{key}' is not a list")
    return items
