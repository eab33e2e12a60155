# gateway_dashboard/models/ws_events.py
from typing import Literal
from pydantic import BaseModel

from gateway_dashboard.models.view import DashboardView


class WSEvent(BaseModel):
    type: Literal["event"] = "event"
    channel: Literal["dashboard"] = "dashboard"
    event: Literal["view.update"] = "view.update"
    data: DashboardView
