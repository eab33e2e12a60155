# gateway_dashboard/services/sync_loop.py
from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import Counter
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Set

from gateway_dashboard.core.config import Settings, settings as default_settings
from gateway_dashboard.core.exceptions import GatewayError
from gateway_dashboard.domain.normalizer import normalize_metrics
from gateway_dashboard.models.metrics import MetricsView
from gateway_dashboard.models.view import ConnectivityState
from gateway_dashboard.services.gateway_client import GatewayClient
from gateway_dashboard.services.renderer import Renderer

logger = logging.getLogger(__name__)


class _Busy(Exception):
    """Raised by the in-flight guard when an endpoint is still pending."""


class SyncLoop:
    """
    Periodic refresh of the dashboard.

    One tick = fetch metrics -> normalise -> render -> connectivity, then the
    messages/topics refresh. A failed metrics fetch (transport error or any
    non-2xx) marks the dashboard Disconnected and ends the tick there.

    With `single_flight` on, each gateway endpoint has at most one request
    outstanding; a tick that would overlap a pending request for the same
    endpoint is dropped instead of queued.
    """

    def __init__(
        self,
        client: GatewayClient,
        renderer: Renderer,
        cfg: Optional[Settings] = None,
    ) -> None:
        self._client = client
        self._renderer = renderer
        self._cfg = cfg or default_settings
        self._state = ConnectivityState.DISCONNECTED
        self._task: asyncio.Task | None = None
        self._ticks: Set[asyncio.Task] = set()
        self._in_flight: Set[str] = set()
        self.stats: Counter = Counter()

    # ------- public API -------

    @property
    def state(self) -> ConnectivityState:
        return self._state

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Run one tick right away, then keep ticking every refresh interval."""
        if self._task is not None:
            return
        first = self._spawn_tick()
        self._task = asyncio.create_task(self._run(), name="dashboard-sync-loop")
        await asyncio.wait({first})

    async def stop(self) -> None:
        """Cancel the periodic task and any tick still in flight."""
        task, self._task = self._task, None
        pending = [t for t in (task, *self._ticks) if t is not None]
        for t in pending:
            t.cancel()
        for t in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await t
        self._ticks.clear()

    async def tick(self) -> Optional[MetricsView]:
        """Execute one refresh cycle and return the view-model it rendered.

        Returns ``None`` when the metrics fetch failed or was skipped because a
        previous one is still pending.
        """
        try:
            async with self._guard("metrics"):
                payload = await self._client.fetch_metrics()
        except _Busy:
            self.stats["skipped"] += 1
            logger.debug("Previous metrics fetch still pending; tick skipped")
            return None
        except GatewayError as exc:
            self.stats["disconnected"] += 1
            logger.warning("Error fetching metrics: %s", exc)
            self._set_state(ConnectivityState.DISCONNECTED)
            return None

        view = normalize_metrics(payload)
        self._renderer.render_metrics(view)
        self._set_state(ConnectivityState.CONNECTED)
        self.stats["connected"] += 1

        await self.refresh_logs()
        return view

    async def refresh_logs(self) -> None:
        """Refresh recent messages and topics concurrently, each on its own."""
        await asyncio.gather(self._refresh_messages(), self._refresh_topics())

    # ------- internals -------

    async def _run(self) -> None:
        interval = self._cfg.refresh_interval_sec
        while True:
            await asyncio.sleep(interval)
            # Ticks must not wait on one another; a slow gateway gives
            # overlapping ticks, which the in-flight guard then thins out.
            self._spawn_tick()

    def _spawn_tick(self) -> asyncio.Task:
        t = asyncio.create_task(self._safe_tick())
        self._ticks.add(t)
        t.add_done_callback(self._ticks.discard)
        return t

    async def _safe_tick(self) -> None:
        try:
            await self.tick()
        except Exception:
            # Rendering bugs must not kill the loop; next tick retries.
            logger.exception("Dashboard tick crashed")

    async def _refresh_messages(self) -> None:
        try:
            async with self._guard("messages"):
                records = await self._client.fetch_messages(self._cfg.list_limit)
        except _Busy:
            logger.debug("Previous messages fetch still pending; skipped")
            return
        except GatewayError as exc:
            self.stats["messages_failed"] += 1
            logger.warning("Error fetching recent messages: %s", exc)
            return
        self._renderer.render_messages(records)

    async def _refresh_topics(self) -> None:
        try:
            async with self._guard("topics"):
                topics = await self._client.fetch_topics(self._cfg.list_limit)
        except _Busy:
            logger.debug("Previous topics fetch still pending; skipped")
            return
        except GatewayError as exc:
            self.stats["topics_failed"] += 1
            logger.warning("Error fetching topics: %s", exc)
            return
        self._renderer.render_topics(topics)

    def _set_state(self, state: ConnectivityState) -> None:
        self._state = state
        self._renderer.render_status(state)

    @asynccontextmanager
    async def _guard(self, endpoint: str) -> AsyncIterator[None]:
        if not self._cfg.single_flight:
            yield
            return
        if endpoint in self._in_flight:
            raise _Busy(endpoint)
        self._in_flight.add(endpoint)
        try:
            yield
        finally:
            self._in_flight.discard(endpoint)
