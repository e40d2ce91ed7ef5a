"""
Display metadata for every status.

Rules:
- Pure data: label text, affect token, category, animation flag.
- No styling: `category` names a visual treatment, the client owns colors.
- `affect` stands in for an icon/emoji identity.
- VoiceStatus.HIDDEN has no entry: it renders nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Mapping

from reconciliation.enums.mic_status import MicStatus
from reconciliation.enums.status import VoiceStatus


@dataclass(frozen=True)
class StatusDisplay:
    """How one status looks to the student."""
    label: str
    affect: str
    category: str
    aria_label: str
    animated: bool = False


# Categories
SUCCESS: Final[str] = "success"
INFO: Final[str] = "info"
WARNING: Final[str] = "warning"
ACCENT: Final[str] = "accent"
NEUTRAL: Final[str] = "neutral"
DANGER: Final[str] = "danger"
PROGRESS: Final[str] = "progress"


VOICE_STATUS_DISPLAY: Final[Mapping[VoiceStatus, StatusDisplay]] = {
    VoiceStatus.LISTENING: StatusDisplay(
        label="Tutor is listening...",
        affect="ready",
        category=SUCCESS,
        aria_label="Tutor is listening",
    ),
    VoiceStatus.HEARING_YOU: StatusDisplay(
        label="Hearing you...",
        affect="voice_bars",
        category=INFO,
        aria_label="Tutor is hearing you",
        animated=True,
    ),
    VoiceStatus.THINKING: StatusDisplay(
        label="Tutor is thinking...",
        affect="thinking_dots",
        category=WARNING,
        aria_label="Tutor is thinking",
        animated=True,
    ),
    VoiceStatus.SPEAKING: StatusDisplay(
        label="Tutor is speaking...",
        affect="speaker",
        category=ACCENT,
        aria_label="Tutor is speaking",
    ),
    VoiceStatus.LISTEN_ONLY: StatusDisplay(
        label="Listen-only mode (mic off)",
        affect="ear",
        category=NEUTRAL,
        aria_label="Listen-only mode, microphone off",
    ),
    VoiceStatus.TEXT_ONLY: StatusDisplay(
        label="Text mode",
        affect="chat",
        category=NEUTRAL,
        aria_label="Text mode",
    ),
    VoiceStatus.MIC_MUTED: StatusDisplay(
        label="Mic muted",
        affect="mic_muted",
        category=NEUTRAL,
        aria_label="Microphone muted",
    ),
    VoiceStatus.DISCONNECTED: StatusDisplay(
        label="Disconnected",
        affect="offline",
        category=DANGER,
        aria_label="Disconnected",
    ),
}


MIC_STATUS_DISPLAY: Final[Mapping[MicStatus, StatusDisplay]] = {
    MicStatus.MIC_OFF: StatusDisplay(
        label="Mic Off",
        affect="mic_off",
        category=NEUTRAL,
        aria_label="Microphone is off",
    ),
    MicStatus.LISTENING: StatusDisplay(
        label="Listening",
        affect="mic",
        category=INFO,
        aria_label="Microphone is listening for your voice",
        animated=True,
    ),
    MicStatus.HEARING_YOU: StatusDisplay(
        label="Hearing You",
        affect="audio_lines",
        category=SUCCESS,
        aria_label="We can hear you speaking",
        animated=True,
    ),
    MicStatus.IGNORING_NOISE: StatusDisplay(
        label="Filtering Noise",
        affect="noise_filtered",
        category=WARNING,
        aria_label="Background noise is being filtered out",
    ),
    MicStatus.TUTOR_SPEAKING: StatusDisplay(
        label="Tutor Speaking",
        affect="speaker",
        category=ACCENT,
        aria_label="Tutor is speaking",
        animated=True,
    ),
    MicStatus.PROCESSING: StatusDisplay(
        label="Processing",
        affect="spinner",
        category=PROGRESS,
        aria_label="Processing your message",
        animated=True,
    ),
}


def display_for(status: VoiceStatus | MicStatus) -> StatusDisplay | None:
    """Metadata for a status, or None when it renders nothing."""
    if isinstance(status, VoiceStatus):
        return VOICE_STATUS_DISPLAY.get(status)
    return MIC_STATUS_DISPLAY.get(status)
