"""
Authoritative reconciliation state container.

Rules:
- This dataclass is a pure data model.
- It contains ALL state the reducer may ever need.
- No behavior, no helpers, no derived logic.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from constants import DebounceTiming
from reconciliation.enums.status import VoiceStatus
from reconciliation.signals import SignalTuple


# =============================================================================
# Pending commit
# =============================================================================

class CommitReason(str, Enum):
    """Which debounce rule scheduled a pending commit."""

    ENTER_HEARING = "enter_hearing"
    EXIT_HEARING = "exit_hearing"
    TRANSITION = "transition"


@dataclass(frozen=True)
class PendingCommit:
    """
    The one outstanding delayed commit.

    commit_id is monotonic per engine and never reused, so a timer
    scheduled for an older commit can always be told apart.
    """
    commit_id: int
    target: VoiceStatus
    duration_ms: int
    reason: CommitReason
    scheduled_ts_ms: int


# =============================================================================
# Reconciliation State
# =============================================================================

@dataclass(frozen=True)
class ReconciliationState:
    """Immutable snapshot of all engine-owned state."""

    timing: DebounceTiming = field(default_factory=DebounceTiming)

    # ------------------------------------------------------------------
    # Statuses
    # ------------------------------------------------------------------
    committed: VoiceStatus = VoiceStatus.HIDDEN
    desired: VoiceStatus = VoiceStatus.HIDDEN

    # ------------------------------------------------------------------
    # Commit timer (arena of one)
    # ------------------------------------------------------------------
    pending: PendingCommit | None = None
    last_commit_id: int = 0

    # ------------------------------------------------------------------
    # Hearing episode
    # ------------------------------------------------------------------
    # Set when an episode starts; informational only, never gates a
    # commit. Cleared whenever the episode ends or is abandoned.
    hearing_started_ms: int | None = None

    # ------------------------------------------------------------------
    # Input tracking
    # ------------------------------------------------------------------
    last_signals: SignalTuple | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    torn_down: bool = False
