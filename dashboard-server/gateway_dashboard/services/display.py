# gateway_dashboard/services/display.py
import threading
from typing import Iterable, Optional

from gateway_dashboard.models.messages import Notification
from gateway_dashboard.models.view import (
    DashboardView,
    FormState,
    MessageLogItem,
    MetricsPanel,
    StatusIndicator,
    TopicListItem,
)


class DisplaySurface:
    """
    The dashboard's display: one `DashboardView` whose sections are only ever
    replaced wholesale, never patched in place.

    Every write bumps `version`, which the WebSocket pusher watches to decide
    when to send a new frame. Readers always get a deep copy.
    """

    def __init__(self) -> None:
        self._view = DashboardView()
        self._lock = threading.RLock()

    @property
    def version(self) -> int:
        with self._lock:
            return self._view.version

    def snapshot(self) -> DashboardView:
        with self._lock:
            return self._view.model_copy(deep=True)

    # -------- section writers --------

    def _replace(self, **sections) -> None:
        with self._lock:
            self._view = self._view.model_copy(
                update={**sections, "version": self._view.version + 1}
            )

    def set_metrics(self, panel: MetricsPanel) -> None:
        self._replace(metrics=panel)

    def set_status(self, indicator: StatusIndicator) -> None:
        self._replace(status=indicator)

    def replace_messages(self, items: Iterable[MessageLogItem]) -> None:
        self._replace(messageLog=list(items))

    def replace_topics(self, items: Iterable[TopicListItem]) -> None:
        self._replace(topics=list(items))

    def update_form(self, **fields) -> FormState:
        with self._lock:
            form = self._view.form.model_copy(update=fields)
            self._replace(form=form)
            return form

    def notify(self, notification: Optional[Notification]) -> None:
        self._replace(lastNotification=notification)
