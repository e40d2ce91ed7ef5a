"""
Voice status enumeration.

Rules:
- This enum defines ONLY the displayable voice statuses.
- No behavior, no helper methods, no side effects.
- Which status is desired, and when it commits, is decided in the reducer.
"""

from __future__ import annotations

from enum import Enum


class VoiceStatus(str, Enum):
    """
    Closed set of statuses the voice indicator can show.

    HIDDEN is the initial value before anything has been committed and
    renders nothing.
    """

    LISTENING = "listening"
    HEARING_YOU = "hearing_you"
    THINKING = "thinking"
    SPEAKING = "speaking"
    LISTEN_ONLY = "listen_only"
    TEXT_ONLY = "text_only"
    MIC_MUTED = "mic_muted"
    DISCONNECTED = "disconnected"
    HIDDEN = "hidden"
