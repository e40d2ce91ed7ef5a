"""
BEHAVIOR-AS-CONSTANTS
---------------------
Single source of truth for every timing and wording invariant of the
status pipeline.

Rules:
- If changing a value changes observable behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

# =============================================================================
# Voice status debounce (reconciliation engine)
# =============================================================================
# Ordering is deliberate and enforced by DebounceTiming:
#   EXIT_HEARING > ENTER_HEARING > TRANSITION

STATUS_ENTER_HEARING_DEBOUNCE_MS: Final[int] = 200
STATUS_EXIT_HEARING_DEBOUNCE_MS: Final[int] = 700
STATUS_TRANSITION_DEBOUNCE_MS: Final[int] = 100

# =============================================================================
# Presentation
# =============================================================================

STATUS_PULSE_MS: Final[int] = 2000

# =============================================================================
# Mic status hysteresis
# =============================================================================

MIC_ENTER_HEARING_YOU_MS: Final[int] = 300
MIC_EXIT_HEARING_YOU_MS: Final[int] = 600
MIC_ENTER_IGNORING_NOISE_MS: Final[int] = 800
MIC_EXIT_IGNORING_NOISE_MS: Final[int] = 400

# =============================================================================
# Live session lifecycle
# =============================================================================

SESSION_CONNECTION_TYPE: Final[str] = "webrtc"

SESSION_GREETING_TEXT: Final[str] = "Connected! How can I help you today?"

ERROR_NOT_CONFIGURED: Final[str] = "Chat not configured"
ERROR_MIC_PERMISSION_DENIED: Final[str] = (
    "Microphone access denied. Please allow microphone access."
)
ERROR_CONNECT_FAILED: Final[str] = "Failed to connect. Please try again."
ERROR_CONNECTION_LOST: Final[str] = "Connection error. Please try again."

# =============================================================================
# Convenience Bundles
# =============================================================================


@dataclass(frozen=True)
class DebounceTiming:
    """
    Immutable bundle of the engine's debounce windows.

    A convenience wrapper for passing timing around (and overriding it
    from config); it is NOT a second source of truth.

    Raises:
        ValueError if the windows are not strictly ordered
        exit > enter > transition > 0.
    """

    enter_hearing_ms: int = STATUS_ENTER_HEARING_DEBOUNCE_MS
    exit_hearing_ms: int = STATUS_EXIT_HEARING_DEBOUNCE_MS
    transition_ms: int = STATUS_TRANSITION_DEBOUNCE_MS

    def __post_init__(self) -> None:
        if not (
            self.exit_hearing_ms
            > self.enter_hearing_ms
            > self.transition_ms
            > 0
        ):
            raise ValueError(
                "debounce windows must satisfy exit > enter > transition > 0, "
                f"got exit={self.exit_hearing_ms} enter={self.enter_hearing_ms} "
                f"transition={self.transition_ms}"
            )


DEFAULT_DEBOUNCE_TIMING: Final[DebounceTiming] = DebounceTiming()


@dataclass(frozen=True)
class MicHysteresis:
    """Immutable bundle of the mic pill hysteresis delays."""

    enter_hearing_you_ms: int = MIC_ENTER_HEARING_YOU_MS
    exit_hearing_you_ms: int = MIC_EXIT_HEARING_YOU_MS
    enter_ignoring_noise_ms: int = MIC_ENTER_IGNORING_NOISE_MS
    exit_ignoring_noise_ms: int = MIC_EXIT_IGNORING_NOISE_MS


DEFAULT_MIC_HYSTERESIS: Final[MicHysteresis] = MicHysteresis()
