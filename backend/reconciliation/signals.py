"""
Signal tuple: the engine's only input.

Rules:
- A SignalTuple is always fully defined (no partial / optional fields).
- It is an immutable value; it is passed by value on every update.
- Any combination is legal input, however implausible.

Decoding from the wire is strict: a missing field or a wrong type is a
SignalDecodeError, never a silently defaulted value.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping

from reconciliation.enums.mode import CommunicationMode


class SignalDecodeError(ValueError):
    """Raised when an inbound signal payload is partial or mistyped."""


_BOOL_FIELDS: tuple[str, ...] = (
    "connected",
    "mic_enabled",
    "tutor_thinking",
    "tutor_speaking",
    "hearing_student",
)


@dataclass(frozen=True)
class SignalTuple:
    """Current boolean/enum inputs describing one live session."""

    connected: bool
    mode: CommunicationMode
    mic_enabled: bool
    tutor_thinking: bool
    tutor_speaking: bool
    hearing_student: bool

    def with_changes(self, **changes: Any) -> SignalTuple:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Wire representation (inverse of decode_signals)."""
        return {
            "connected": self.connected,
            "mode": self.mode.value,
            "mic_enabled": self.mic_enabled,
            "tutor_thinking": self.tutor_thinking,
            "tutor_speaking": self.tutor_speaking,
            "hearing_student": self.hearing_student,
        }


# Signals of a session that has not connected yet.
IDLE_SIGNALS = SignalTuple(
    connected=False,
    mode=CommunicationMode.VOICE,
    mic_enabled=True,
    tutor_thinking=False,
    tutor_speaking=False,
    hearing_student=False,
)


def decode_signals(data: Mapping[str, Any]) -> SignalTuple:
    """
    Decode a wire mapping into a SignalTuple.

    Raises:
        SignalDecodeError on a missing field, a non-bool flag or an
        unknown mode.
    """
    missing = [k for k in ("mode", *_BOOL_FIELDS) if k not in data]
    if missing:
        raise SignalDecodeError(f"missing signal fields: {', '.join(missing)}")

    for name in _BOOL_FIELDS:
        if not isinstance(data[name], bool):
            raise SignalDecodeError(
                f"signal {name!r} must be a bool, got {type(data[name]).__name__}"
            )

    try:
        mode = CommunicationMode(data["mode"])
    except (TypeError, ValueError) as exc:
        raise SignalDecodeError(f"unknown mode: {data['mode']!r}") from exc

    return SignalTuple(
        connected=data["connected"],
        mode=mode,
        mic_enabled=data["mic_enabled"],
        tutor_thinking=data["tutor_thinking"],
        tutor_speaking=data["tutor_speaking"],
        hearing_student=data["hearing_student"],
    )
