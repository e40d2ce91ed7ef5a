"""
Structured event log for the status pipeline.

One compact JSON object per stdout line, flushed as it is written.
Reducer decisions, lifecycle transitions and metrics all land here.
"""

from __future__ import annotations

import json
import sys
import time
from typing import Any, Mapping, Callable


# ------------------------------------------------------------------
# Explicit output sink (patchable in tests)
# ------------------------------------------------------------------

def _stdout_print(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()

_print: Callable[[str], None] = _stdout_print

_enabled: bool = True


def set_enabled(enabled: bool) -> None:
    """
    Globally enable or silence event output.

    Driven by AppConfig.enable_json_logs at app construction.
    """
    global _enabled  # pylint: disable=global-statement
    _enabled = enabled


def now_ms() -> int:
    """Wall-clock milliseconds for event timestamps."""
    return time.time_ns() // 1_000_000


def log_event(event: Mapping[str, Any]) -> None:
    """
    Emit one event line.

    Callers pass a complete event (ts_ms, event_type, session_id where
    known). Enum members are written as their values. A payload that
    cannot be serialized is replaced by LOGGER_SERIALIZATION_ERROR; this
    function never raises.
    """
    if not _enabled:
        return

    try:
        line = json.dumps(
            event,
            ensure_ascii=False,
            separators=(",", ":"),
            default=_default,
        )
    except (TypeError, ValueError) as e:
        # Last-resort fallback: logging must never crash the engine
        fallback: dict[str, Any] = {
            "ts_ms": event.get("ts_ms"),
            "event_type": "LOGGER_SERIALIZATION_ERROR",
            "error": str(e),
            "original_event_repr": repr(event),
        }
        line = json.dumps(fallback, ensure_ascii=False, separators=(",", ":"))

    _print(line)


def _default(value: Any) -> Any:
    # str-valued enums (VoiceStatus, MicStatus, ...) log as their value
    enum_value = getattr(value, "value", None)
    if isinstance(enum_value, (str, int)):
        return enum_value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
