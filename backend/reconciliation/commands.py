"""
Side-effect command definitions for the status engine.

Rules:
- Commands are declarative requests for side effects.
- Commands are emitted by the reducer and executed by the runtime.
- No behavior, no async, no I/O, no clocks.
Invariant:
    - All concrete Command subclasses MUST be frozen dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from reconciliation.enums.status import VoiceStatus

# =============================================================================
# Command Type Enumeration
# =============================================================================

class CommandType(str, Enum):
    """
    Canonical command types emitted by the reducer.

    Stable discriminants used for logging and runtime dispatch.
    """

    # Timers
    START_COMMIT_TIMER = "START_COMMIT_TIMER"
    CANCEL_COMMIT_TIMER = "CANCEL_COMMIT_TIMER"

    # Output
    PUBLISH_STATUS = "PUBLISH_STATUS"

    # Observability
    LOG_EVENT = "LOG_EVENT"
    RECORD_METRIC = "RECORD_METRIC"


# =============================================================================
# Base Command
# =============================================================================

class Command:
    """
    Base command type.

    command_type is an explicit discriminant and must never be inferred
    from Python type identity.
    """

    command_type: CommandType


# =============================================================================
# Timer Commands
# =============================================================================

@dataclass(frozen=True)
class StartCommitTimer(Command):
    """
    Request to (re)start the single commit timer.

    On expiry the runtime must inject CommitTimerFired(commit_id).
    Any previously running commit timer is replaced.
    """
    commit_id: int
    duration_ms: int
    target: VoiceStatus
    command_type: CommandType = CommandType.START_COMMIT_TIMER


@dataclass(frozen=True)
class CancelCommitTimer(Command):
    """Request to cancel the pending commit timer, if any."""
    commit_id: int
    command_type: CommandType = CommandType.CANCEL_COMMIT_TIMER


# =============================================================================
# Output Commands
# =============================================================================

@dataclass(frozen=True)
class PublishStatus(Command):
    """A new status was committed and must reach the presentation layer."""
    status: VoiceStatus
    previous: VoiceStatus
    command_type: CommandType = CommandType.PUBLISH_STATUS


# =============================================================================
# Observability Commands
# =============================================================================

@dataclass(frozen=True)
class LogEvent(Command):
    """Request to emit a structured observability event."""
    event: dict[str, Any]
    command_type: CommandType = CommandType.LOG_EVENT


@dataclass(frozen=True)
class RecordMetric(Command):
    """Request to record a duration measured by the reducer."""
    name: str
    value_ms: int
    command_type: CommandType = CommandType.RECORD_METRIC
