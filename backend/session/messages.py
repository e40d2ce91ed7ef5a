"""
Session message log.

Responsibilities:
- Store user/agent messages in arrival order
- Provide a serializable view for display

Non-responsibilities:
- No merging, reordering or de-duplication
- No persistence
- No truncation
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal


Role = Literal["user", "agent"]


@dataclass(frozen=True)
class SessionMessage:
    """Single displayed message."""
    role: Role
    text: str
    ts_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role, "text": self.text, "ts_ms": self.ts_ms}


def role_for_source(source: str) -> Role:
    """Transport sources other than "user" are the agent."""
    return "user" if source == "user" else "agent"


class MessageLog:
    """
    Append-only message log.

    Invariants:
    - Messages are stored in arrival order
    - Entries are never modified once appended
    """

    def __init__(self) -> None:
        self._messages: list[SessionMessage] = []

    def __len__(self) -> int:
        return len(self._messages)

    def append(self, role: Role, text: str, ts_ms: int) -> SessionMessage:
        message = SessionMessage(role=role, text=text, ts_ms=ts_ms)
        self._messages.append(message)
        return message

    def clear(self) -> None:
        self._messages.clear()

    def messages(self) -> tuple[SessionMessage, ...]:
        return tuple(self._messages)

    def serialize(self) -> list[dict[str, Any]]:
        return [m.to_dict() for m in self._messages]
