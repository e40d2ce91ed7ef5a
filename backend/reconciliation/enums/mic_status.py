"""
Mic pill status enumeration.

Independent of VoiceStatus: mic statuses are observed upstream and only
smoothed (reconciliation.mic_status) and rendered (presentation).
"""

from __future__ import annotations

from enum import Enum


class MicStatus(str, Enum):
    """Microphone state shown in the mic pill."""

    MIC_OFF = "mic_off"                # Microphone disabled by the student
    LISTENING = "listening"            # Mic on, waiting for speech
    HEARING_YOU = "hearing_you"        # Student speech detected
    IGNORING_NOISE = "ignoring_noise"  # Background noise, not speech
    TUTOR_SPEAKING = "tutor_speaking"  # Tutor playback in progress
    PROCESSING = "processing"          # Waiting for the tutor's reply
