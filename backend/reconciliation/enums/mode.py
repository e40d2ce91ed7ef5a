"""
Communication mode enumeration.

Modes are orthogonal to statuses:
- Status answers: "What should the student see right now?"
- Mode answers:   "How did the student choose to talk to the tutor?"
"""

from __future__ import annotations

from enum import Enum


class CommunicationMode(str, Enum):
    """
    Negotiated communication mode of a tutoring session.

    VOICE:
        Full duplex; the student's mic drives "hearing you".

    HYBRID:
        Tutor speaks, student types. The mic is never listened to.

    TEXT:
        No audio in either direction.
    """

    VOICE = "voice"
    HYBRID = "hybrid"
    TEXT = "text"
