"""
Live-session lifecycle adapter.

Responsibilities:
- Start the underlying voice session: microphone permission, then open
- End it best-effort (failures logged, never surfaced)
- Classify start failures into distinct user-facing strings
- Translate transport callbacks into the SignalTuple, pushed on change
- Keep the append-only message log

Non-responsibilities:
- No audio capture or transport (collaborators, see Protocols below)
- No status decisions (reconciliation engine)
- No retries
"""

from __future__ import annotations

from typing import Awaitable, Callable, Protocol, runtime_checkable

from constants import (
    ERROR_CONNECT_FAILED,
    ERROR_CONNECTION_LOST,
    ERROR_MIC_PERMISSION_DENIED,
    ERROR_NOT_CONFIGURED,
    SESSION_CONNECTION_TYPE,
    SESSION_GREETING_TEXT,
)
from observability.logger import log_event, now_ms
from observability.metrics import timed
from reconciliation.enums.mode import CommunicationMode
from reconciliation.signals import SignalTuple
from session.connection_status import ConnectionStatus
from session.messages import MessageLog, Role, SessionMessage, role_for_source


# ---------------------------------------------------------------------
# Collaborator Protocols
# ---------------------------------------------------------------------

@runtime_checkable
class MicrophonePermissionProvider(Protocol):
    async def request_microphone(self) -> None:
        """
        Ask for microphone access.

        Raises PermissionError (or MicrophonePermissionDenied) when the
        student refuses.
        """


@runtime_checkable
class ConversationTransport(Protocol):
    async def start_session(self, *, agent_id: str, connection_type: str) -> None:
        """Open the session. Raises on failure (e.g. ConnectionError)."""

    async def end_session(self) -> None:
        """Close the session. May raise; callers treat it as best-effort."""


SignalSink = Callable[[SignalTuple], Awaitable[None]]
MessageSink = Callable[[SessionMessage], Awaitable[None]]
ClockFn = Callable[[], int]


# ---------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------

class SessionStartError(Exception):
    """A session could not be started; carries the user-facing string."""

    def __init__(self, user_message: str, cause: BaseException | None = None) -> None:
        super().__init__(user_message)
        self.user_message = user_message
        self.cause = cause


class MicrophonePermissionDenied(SessionStartError):
    """The student refused microphone access."""

    def __init__(self, cause: BaseException | None = None) -> None:
        super().__init__(ERROR_MIC_PERMISSION_DENIED, cause)


class SessionConnectionError(SessionStartError):
    """Any other failure while opening the session."""

    def __init__(self, cause: BaseException | None = None) -> None:
        super().__init__(ERROR_CONNECT_FAILED, cause)


class SessionNotConfigured(SessionStartError):
    """No agent id configured; nothing was attempted."""

    def __init__(self) -> None:
        super().__init__(ERROR_NOT_CONFIGURED)


def classify_start_failure(exc: BaseException) -> SessionStartError:
    """Map a raw start failure to permission-denied vs generic failure."""
    if isinstance(exc, SessionStartError):
        return exc
    if isinstance(exc, PermissionError):
        return MicrophonePermissionDenied(exc)
    return SessionConnectionError(exc)


# ---------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------

class LiveSessionAdapter:
    """
    Owns one live voice session and exposes it as signals.

    The transport reports back through the on_* callbacks; the adapter
    never polls.
    """

    def __init__(
        self,
        *,
        transport: ConversationTransport,
        permissions: MicrophonePermissionProvider,
        agent_id: str | None,
        session_id: str | None = None,
        mode: CommunicationMode = CommunicationMode.VOICE,
        clock: ClockFn = now_ms,
    ) -> None:
        self._transport = transport
        self._permissions = permissions
        self._agent_id = agent_id
        self._session_id = session_id
        self._clock = clock

        self._connection_status = ConnectionStatus.DISCONNECTED
        self._mode = mode
        self._mic_enabled = True
        self._tutor_thinking = False
        self._tutor_speaking = False
        self._hearing_student = False

        self._is_open = False
        self._error: str | None = None
        self._last_failure: SessionStartError | None = None
        self._log = MessageLog()

        self._published: SignalTuple | None = None
        self._signal_sinks: list[SignalSink] = []
        self._message_sinks: list[MessageSink] = []

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def connection_status(self) -> ConnectionStatus:
        return self._connection_status

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def error(self) -> str | None:
        """User-facing error string, if any."""
        return self._error

    @property
    def last_failure(self) -> SessionStartError | None:
        return self._last_failure

    @property
    def messages(self) -> tuple[SessionMessage, ...]:
        return self._log.messages()

    @property
    def signals(self) -> SignalTuple:
        """The current signal tuple (always fully defined)."""
        return SignalTuple(
            connected=self._connection_status is ConnectionStatus.CONNECTED,
            mode=self._mode,
            mic_enabled=self._mic_enabled,
            tutor_thinking=self._tutor_thinking,
            tutor_speaking=self._tutor_speaking,
            hearing_student=self._hearing_student,
        )

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe_signals(self, sink: SignalSink) -> None:
        self._signal_sinks.append(sink)

    def subscribe_messages(self, sink: MessageSink) -> None:
        self._message_sinks.append(sink)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        """
        Request microphone permission, then open the session.

        Returns True if the transport accepted the start. On failure the
        classified user-facing string is available as `error`.
        """
        if not self._agent_id:
            self._fail(SessionNotConfigured())
            return False

        self._is_open = True
        self._log.clear()
        self._error = None
        self._last_failure = None
        self._connection_status = ConnectionStatus.CONNECTING

        try:
            with timed("session_start_ms", session_id=self._session_id):
                await self._permissions.request_microphone()
                await self._transport.start_session(
                    agent_id=self._agent_id,
                    connection_type=SESSION_CONNECTION_TYPE,
                )
        except Exception as exc:  # pylint: disable=broad-exception-caught
            self._connection_status = ConnectionStatus.DISCONNECTED
            self._fail(classify_start_failure(exc))
            await self._publish_signals()
            return False

        log_event({
            "ts_ms": self._clock(),
            "event_type": "SESSION_START_REQUESTED",
            "session_id": self._session_id,
            "agent_id": self._agent_id,
        })
        return True

    async def end(self) -> None:
        """
        End the session.

        Always returns the adapter to the closed state, whatever the
        transport does.
        """
        try:
            await self._transport.end_session()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": self._clock(),
                "event_type": "SESSION_END_FAILED",
                "session_id": self._session_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })

        self._is_open = False
        self._log.clear()
        self._error = None
        self._connection_status = ConnectionStatus.DISCONNECTED
        self._tutor_thinking = False
        self._tutor_speaking = False
        self._hearing_student = False

        log_event({
            "ts_ms": self._clock(),
            "event_type": "SESSION_CLOSED",
            "session_id": self._session_id,
        })
        await self._publish_signals()

    # ------------------------------------------------------------------
    # Transport callbacks
    # ------------------------------------------------------------------

    async def on_connect(self) -> None:
        self._connection_status = ConnectionStatus.CONNECTED
        self._error = None
        log_event({
            "ts_ms": self._clock(),
            "event_type": "SESSION_CONNECTED",
            "session_id": self._session_id,
        })
        await self._append("agent", SESSION_GREETING_TEXT)
        await self._publish_signals()

    async def on_disconnect(self) -> None:
        self._connection_status = ConnectionStatus.DISCONNECTED
        log_event({
            "ts_ms": self._clock(),
            "event_type": "SESSION_DISCONNECTED",
            "session_id": self._session_id,
        })
        await self._publish_signals()

    async def on_message(self, source: str, text: str) -> None:
        """Append a transcript message; empty text is ignored."""
        if not text:
            return
        await self._append(role_for_source(source), text)

    async def on_error(self, reason: str | None = None) -> None:
        self._error = ERROR_CONNECTION_LOST
        log_event({
            "ts_ms": self._clock(),
            "event_type": "SESSION_ERROR",
            "session_id": self._session_id,
            "reason": reason,
        })

    async def on_mode_change(self, mode: CommunicationMode) -> None:
        self._mode = mode
        await self._publish_signals()

    async def on_agent_activity(self, *, thinking: bool, speaking: bool) -> None:
        # Both may be true; the engine resolves it (speaking wins).
        self._tutor_thinking = thinking
        self._tutor_speaking = speaking
        await self._publish_signals()

    async def on_voice_activity(self, hearing: bool) -> None:
        self._hearing_student = hearing
        await self._publish_signals()

    async def set_mic_enabled(self, enabled: bool) -> None:
        self._mic_enabled = enabled
        await self._publish_signals()

    async def apply_signals(self, signals: SignalTuple) -> None:
        """Replace every signal at once (a full tuple reported by the client)."""
        self._connection_status = (
            ConnectionStatus.CONNECTED if signals.connected
            else ConnectionStatus.DISCONNECTED
        )
        self._mode = signals.mode
        self._mic_enabled = signals.mic_enabled
        self._tutor_thinking = signals.tutor_thinking
        self._tutor_speaking = signals.tutor_speaking
        self._hearing_student = signals.hearing_student
        await self._publish_signals()

    async def toggle_mute(self) -> bool:
        """Flip mic enablement; returns the new value."""
        await self.set_mic_enabled(not self._mic_enabled)
        return self._mic_enabled

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _fail(self, failure: SessionStartError) -> None:
        self._error = failure.user_message
        self._last_failure = failure
        cause = failure.cause
        log_event({
            "ts_ms": self._clock(),
            "event_type": "SESSION_START_FAILED",
            "session_id": self._session_id,
            "failure": type(failure).__name__,
            "exception": type(cause).__name__ if cause is not None else None,
            "message": str(cause) if cause is not None else None,
        })

    async def _append(self, role: Role, text: str) -> None:
        message = self._log.append(role, text, self._clock())
        for sink in list(self._message_sinks):
            await sink(message)

    async def _publish_signals(self) -> None:
        signals = self.signals
        if signals == self._published:
            return
        self._published = signals
        for sink in list(self._signal_sinks):
            await sink(signals)
