"""
Client relay collaborators for the lifecycle adapter.

The live voice SDK runs in the student's browser. Over the status
WebSocket the server cannot open a microphone or a voice session itself;
it relays those requests to the client and trusts what the client reports.

- ClientMicrophonePermission: the client reports the permission outcome
  together with its start request.
- ClientRelayTransport: open/close requests become outbound control
  messages; a send failure is a connection failure.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable


OutboundSink = Callable[[dict[str, Any]], Awaitable[None]]


class ClientMicrophonePermission:
    """Permission outcome as reported by the client (None = not asked)."""

    def __init__(self) -> None:
        self.granted: bool | None = None

    async def request_microphone(self) -> None:
        if self.granted is False:
            raise PermissionError("microphone access denied by client")


class ClientRelayTransport:
    """ConversationTransport that asks the client to open/close the SDK session."""

    def __init__(self, send: OutboundSink) -> None:
        self._send = send

    async def start_session(self, *, agent_id: str, connection_type: str) -> None:
        await self._send({
            "type": "OPEN_SESSION",
            "agent_id": agent_id,
            "connection_type": connection_type,
        })

    async def end_session(self) -> None:
        await self._send({"type": "CLOSE_SESSION"})
