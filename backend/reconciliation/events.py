"""
Event definitions for the status reducer.

Rules:
- Events describe facts that have occurred.
- Events carry data only (no behavior).
- All reducer decisions are based on these events.
- No clocks, no timers, no async, no side effects.

Timer events carry the commit_id they were scheduled for, so a timer that
fires after being superseded is recognised as stale and ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from reconciliation.signals import SignalTuple


# =============================================================================
# Event Type Enumeration
# =============================================================================

class EventType(str, Enum):
    """
    Canonical event types understood by the reducer.

    Every event type must be explicitly handled or explicitly ignored.
    """

    SIGNAL_CHANGED = "SIGNAL_CHANGED"
    COMMIT_TIMER_FIRED = "COMMIT_TIMER_FIRED"
    ENGINE_TEARDOWN = "ENGINE_TEARDOWN"


# =============================================================================
# Base Event
# =============================================================================

@dataclass(frozen=True)
class Event:
    """
    Base event type.

    All events must specify:
    - event_type: discriminant
    - ts_ms: timestamp provided by the source (or a fake clock in tests)
    """

    event_type: EventType
    ts_ms: int


# =============================================================================
# Concrete Events
# =============================================================================

@dataclass(frozen=True)
class SignalChanged(Event):
    """The signal source delivered a (possibly identical) signal tuple."""
    signals: SignalTuple


@dataclass(frozen=True)
class CommitTimerFired(Event):
    """A debounce window elapsed for the pending commit `commit_id`."""
    commit_id: int


@dataclass(frozen=True)
class EngineTeardown(Event):
    """The owning session view is going away."""
