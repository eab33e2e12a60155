from __future__ import annotations

import datetime as dt
from typing import Iterable, List

from pydantic import TypeAdapter, ValidationError

from gateway_dashboard.models.messages import MessageRecord
from gateway_dashboard.models.metrics import MetricsView
from gateway_dashboard.models.topics import TopicSummary
from gateway_dashboard.models.view import (
    ConnectivityState,
    MessageLogItem,
    MetricsPanel,
    StatusIndicator,
    TopicListItem,
)
from gateway_dashboard.services.display import DisplaySurface

_STATUS = {
    ConnectivityState.CONNECTED: StatusIndicator(
        state=ConnectivityState.CONNECTED,
        label="Connected",
        color="green",
        indicatorClass="w-3 h-3 rounded-full bg-green-500 mr-2",
        textClass="text-sm font-medium text-green-600",
    ),
    ConnectivityState.DISCONNECTED: StatusIndicator(
        state=ConnectivityState.DISCONNECTED,
        label="Disconnected",
        color="red",
        indicatorClass="w-3 h-3 rounded-full bg-red-500 mr-2",
        textClass="text-sm font-medium text-red-600",
    ),
}


_DATETIME = TypeAdapter(dt.datetime)


def _thousands(n: int) -> str:
    return f"{n:,}"


def metrics_panel(view: MetricsView) -> MetricsPanel:
    return MetricsPanel(
        totalMessages=_thousands(view.messagesProcessed.total),
        successfulMessages=_thousands(view.messagesProcessed.success),
        errorMessages=_thousands(view.messagesProcessed.error),
        avgResponseTime=f"{view.requestDurationMs}ms",
        kafkaErrors=_thousands(view.kafkaErrors),
        authSuccess=_thousands(view.authAttempts.success),
        authErrors=_thousands(view.authAttempts.error),
    )


def status_indicator(state: ConnectivityState) -> StatusIndicator:
    return _STATUS[state].model_copy()


def local_time(timestamp: str) -> str:
    """ISO-8601 -> local ``HH:MM:SS``; ``"Invalid Date"`` when unparseable.

    Go emits RFC3339Nano (up to 9 fractional digits), which pydantic accepts.
    """
    try:
        parsed = _DATETIME.validate_python(timestamp)
    except ValidationError:
        return "Invalid Date"
    return parsed.astimezone().strftime("%H:%M:%S")


def message_item(record: MessageRecord) -> MessageLogItem:
    ok = record.status == "success"
    return MessageLogItem(
        topic=record.topic,
        status=record.status.upper(),
        statusClass="text-green-600" if ok else "text-red-600",
        time=local_time(record.timestamp),
    )


def topic_item(topic: TopicSummary) -> TopicListItem:
    return TopicListItem(
        name=topic.name,
        messageCount=topic.messageCount,
        label=f"{topic.messageCount} messages",
    )


class Renderer:
    """Projects view-models onto a `DisplaySurface`.

    Every call replaces its section outright; lists are cut to `limit`
    entries in the order they were received.
    """

    def __init__(self, surface: DisplaySurface, limit: int = 5) -> None:
        self.surface = surface
        self.limit = limit

    def render_metrics(self, view: MetricsView) -> MetricsPanel:
        panel = metrics_panel(view)
        self.surface.set_metrics(panel)
        return panel

    def render_status(self, state: ConnectivityState) -> StatusIndicator:
        indicator = status_indicator(state)
        self.surface.set_status(indicator)
        return indicator

    def render_messages(self, records: Iterable[MessageRecord]) -> List[MessageLogItem]:
        items = [message_item(r) for r in list(records)[: self.limit]]
        self.surface.replace_messages(items)
        return items

    def render_topics(self, topics: Iterable[TopicSummary]) -> List[TopicListItem]:
        items = [topic_item(t) for t in list(topics)[: self.limit]]
        self.surface.replace_topics(items)
        return items
