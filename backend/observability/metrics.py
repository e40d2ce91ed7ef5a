"""
Duration metrics.

Every measurement becomes exactly one log event; nothing is aggregated
in-process.

Two sources:
- METRIC_TIMER: wall durations measured here on the monotonic clock
  (start_timer/stop_timer, or the timed() block)
- METRIC_VALUE: durations computed by the caller from event timestamps,
  such as hearing episodes (record_value)
"""

from __future__ import annotations

import itertools
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

from observability.logger import log_event, now_ms


@dataclass(frozen=True)
class _OpenTimer:
    name: str
    started_ns: int


_timer_ids = itertools.count(1)
_open_timers: dict[str, _OpenTimer] = {}


def _emit(
    kind: str,
    name: str,
    value_ms: int,
    session_id: str | None,
    details: dict[str, Any] | None,
) -> None:
    log_event({
        "ts_ms": now_ms(),
        "event_type": kind,
        "metric": name,
        "value_ms": value_ms,
        "session_id": session_id,
        "details": details or {},
    })


def start_timer(name: str) -> str:
    """
    Open a timer and return its handle.

    The handle must reach stop_timer(); timed() does that for you.
    """
    timer_id = f"mt_{next(_timer_ids)}"
    _open_timers[timer_id] = _OpenTimer(name=name, started_ns=time.monotonic_ns())
    return timer_id


def stop_timer(
    timer_id: str,
    *,
    session_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> int | None:
    """Close a timer, emit METRIC_TIMER, return the duration (None if unknown)."""
    timer = _open_timers.pop(timer_id, None)
    if timer is None:
        return None

    elapsed_ms = (time.monotonic_ns() - timer.started_ns) // 1_000_000
    _emit("METRIC_TIMER", timer.name, elapsed_ms, session_id, details)
    return elapsed_ms


def record_value(
    name: str,
    value_ms: int,
    *,
    session_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> None:
    """Emit METRIC_VALUE for a duration measured elsewhere."""
    _emit("METRIC_VALUE", name, value_ms, session_id, details)


def active_timer_count() -> int:
    return len(_open_timers)


@contextmanager
def timed(
    name: str,
    *,
    session_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> Iterator[None]:
    """
    Time the enclosed block.

    The metric is emitted once whether the block returns or raises; the
    exception still propagates.

        with timed("session_start_ms", session_id=session_id):
            await transport.start_session(...)
    """
    timer_id = start_timer(name)
    try:
        yield
    finally:
        stop_timer(timer_id, session_id=session_id, details=details)
