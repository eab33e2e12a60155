"""Turn raw gateway metrics payloads into a complete `MetricsView`.

The gateway reports Prometheus counters, so any field can be missing (counter
never incremented), ``null``, or occasionally a stringified float. Rather than
rejecting such payloads the normalizer coerces on a best-effort basis:

* absent / ``None``            -> 0 (a present ``0`` stays ``0``)
* ``int`` / finite ``float``   -> kept, floored to ``int`` for counts
* numeric ``str``              -> parsed like a float
* anything else (bool, list..) -> 0
* negative values              -> clamped to 0

Nothing here raises and nothing mutates its input.
"""
from __future__ import annotations

import math
from typing import Any, Mapping

from gateway_dashboard.models.metrics import MessageCounts, MetricsView


def _as_number(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def _as_count(value: Any) -> int:
    # ints stay exact; floats lose precision above 2**53
    if isinstance(value, int) and not isinstance(value, bool):
        return max(value, 0)
    return int(_as_number(value))


def _section(payload: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = payload.get(key)
    return value if isinstance(value, Mapping) else {}


def _counts(payload: Mapping[str, Any], key: str) -> MessageCounts:
    section = _section(payload, key)
    return MessageCounts(
        success=_as_count(section.get("success")),
        error=_as_count(section.get("error")),
    )


def format_duration(value: Any) -> str:
    """Render an accumulated duration with exactly two decimals."""
    return f"{_as_number(value):.2f}"


def normalize_metrics(payload: Any) -> MetricsView:
    """Build a `MetricsView` from a ``{"metrics": {...}}`` response body.

    Parameters
    ----------
    payload : Any
        Decoded JSON of the gateway's metrics endpoint. Anything that is not a
        mapping, or lacks a ``metrics`` mapping, is treated as empty.
    """
    root = payload if isinstance(payload, Mapping) else {}
    metrics = _section(root, "metrics")
    return MetricsView(
        messagesProcessed=_counts(metrics, "messages_processed"),
        kafkaErrors=_as_count(metrics.get("kafka_errors")),
        authAttempts=_counts(metrics, "auth_attempts"),
        requestDurationMs=format_duration(metrics.get("request_duration_sum")),
    )
