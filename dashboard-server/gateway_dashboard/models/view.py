from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from gateway_dashboard.models.messages import Notification


class ConnectivityState(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class StatusIndicator(BaseModel):
    state: ConnectivityState
    label: str
    color: str
    indicatorClass: str
    textClass: str


class MetricsPanel(BaseModel):
    totalMessages: str = "0"
    successfulMessages: str = "0"
    errorMessages: str = "0"
    avgResponseTime: str = "0.00ms"
    kafkaErrors: str = "0"
    authSuccess: str = "0"
    authErrors: str = "0"


class MessageLogItem(BaseModel):
    topic: str
    status: str             # upper-cased for display
    statusClass: str
    time: str               # local wall-clock time


class TopicListItem(BaseModel):
    name: str
    messageCount: int
    label: str              # "<n> messages"


class FormState(BaseModel):
    topic: str = ""
    key: str = ""
    value: str = ""
    submitEnabled: bool = True


class DashboardView(BaseModel):
    version: int = 0
    metrics: MetricsPanel = Field(default_factory=MetricsPanel)
    status: Optional[StatusIndicator] = None
    messageLog: List[MessageLogItem] = Field(default_factory=list)
    topics: List[TopicListItem] = Field(default_factory=list)
    form: FormState = Field(default_factory=FormState)
    lastNotification: Optional[Notification] = None
