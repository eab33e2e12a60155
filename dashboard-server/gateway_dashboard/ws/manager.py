from __future__ import annotations
import asyncio
from typing import Set
from fastapi import WebSocket
from gateway_dashboard.core.config import settings
from gateway_dashboard.models.ws_events import WSEvent
from gateway_dashboard.services.display import DisplaySurface

class WSManager:
    def __init__(self, surface: DisplaySurface, tick: float | None = None) -> None:
        self.clients: Set[WebSocket] = set()
        self.surface = surface
        self.tick = tick or settings.ws_push_tick
        self._sent_version = -1

    async def connect(self, ws: WebSocket):
        await ws.accept()
        self.clients.add(ws)
        # new clients get the current view immediately
        await ws.send_json(self._frame())

    def disconnect(self, ws: WebSocket):
        self.clients.discard(ws)

    async def broadcast_view_loop(self):
        while True:
            if not self.clients:
                await asyncio.sleep(max(2 * self.tick, 2.0))
                continue
            if self.surface.version != self._sent_version:
                await self.push()
            await asyncio.sleep(self.tick)

    async def push(self):
        frame = self._frame()
        self._sent_version = frame["data"]["version"]
        await self._broadcast(frame)

    async def _broadcast(self, payload: dict):
        dead = []
        for ws in list(self.clients):
            try:
                await ws.send_json(payload)
            except Exception:
                dead.append(ws)
        for ws in dead:
            self.disconnect(ws)

    def _frame(self) -> dict:
        return WSEvent(data=self.surface.snapshot()).model_dump(mode="json")
