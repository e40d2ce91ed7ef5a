# pylint: disable=missing-module-docstring,missing-function-docstring
from typing import Any

from constants import (
    ERROR_CONNECT_FAILED,
    ERROR_CONNECTION_LOST,
    ERROR_MIC_PERMISSION_DENIED,
    ERROR_NOT_CONFIGURED,
    SESSION_GREETING_TEXT,
)
from reconciliation.enums.mode import CommunicationMode
from reconciliation.signals import SignalTuple
from session.connection_status import ConnectionStatus
from session.lifecycle import (
    LiveSessionAdapter,
    MicrophonePermissionDenied,
    SessionConnectionError,
    SessionNotConfigured,
    classify_start_failure,
)
from session.messages import SessionMessage


# ---------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------

class FakePermissions:
    def __init__(self, error: BaseException | None = None) -> None:
        self.error = error
        self.calls = 0

    async def request_microphone(self) -> None:
        self.calls += 1
        if self.error is not None:
            raise self.error


class FakeTransport:
    def __init__(
        self,
        start_error: BaseException | None = None,
        end_error: BaseException | None = None,
    ) -> None:
        self.start_error = start_error
        self.end_error = end_error
        self.started: list[dict[str, str]] = []
        self.ended = 0

    async def start_session(self, *, agent_id: str, connection_type: str) -> None:
        if self.start_error is not None:
            raise self.start_error
        self.started.append({"agent_id": agent_id, "connection_type": connection_type})

    async def end_session(self) -> None:
        self.ended += 1
        if self.end_error is not None:
            raise self.end_error


def make_adapter(
    *,
    transport: FakeTransport | None = None,
    permissions: FakePermissions | None = None,
    agent_id: str | None = "agent_123",
) -> tuple[LiveSessionAdapter, list[SignalTuple], list[SessionMessage]]:
    adapter = LiveSessionAdapter(
        transport=transport or FakeTransport(),
        permissions=permissions or FakePermissions(),
        agent_id=agent_id,
        session_id="sess_life",
    )
    signals: list[SignalTuple] = []
    messages: list[SessionMessage] = []

    async def on_signals(s: SignalTuple) -> None:
        signals.append(s)

    async def on_message(m: SessionMessage) -> None:
        messages.append(m)

    adapter.subscribe_signals(on_signals)
    adapter.subscribe_messages(on_message)
    return adapter, signals, messages


# ---------------------------------------------------------------------
# Start
# ---------------------------------------------------------------------

async def test_start_requests_permission_then_opens_webrtc_session() -> None:
    transport = FakeTransport()
    permissions = FakePermissions()
    adapter, _, _ = make_adapter(transport=transport, permissions=permissions)

    assert await adapter.start()

    assert permissions.calls == 1
    assert transport.started == [{"agent_id": "agent_123", "connection_type": "webrtc"}]
    assert adapter.is_open
    assert adapter.connection_status is ConnectionStatus.CONNECTING
    assert adapter.error is None


async def test_start_without_agent_id_does_nothing() -> None:
    transport = FakeTransport()
    permissions = FakePermissions()
    adapter, signals, _ = make_adapter(
        transport=transport, permissions=permissions, agent_id=None
    )

    assert not await adapter.start()

    assert adapter.error == ERROR_NOT_CONFIGURED
    assert isinstance(adapter.last_failure, SessionNotConfigured)
    assert permissions.calls == 0
    assert transport.started == []
    assert signals == []


async def test_permission_denied_is_reported_distinctly(events: list[dict[str, Any]]) -> None:
    transport = FakeTransport()
    adapter, signals, _ = make_adapter(
        transport=transport,
        permissions=FakePermissions(PermissionError("NotAllowedError")),
    )

    assert not await adapter.start()

    assert adapter.error == ERROR_MIC_PERMISSION_DENIED
    assert isinstance(adapter.last_failure, MicrophonePermissionDenied)
    assert transport.started == []
    assert adapter.connection_status is ConnectionStatus.DISCONNECTED
    assert signals[-1].connected is False

    failed = [e for e in events if e["event_type"] == "SESSION_START_FAILED"]
    assert failed[0]["failure"] == "MicrophonePermissionDenied"
    assert failed[0]["exception"] == "PermissionError"
    assert any(e["event_type"] == "METRIC_TIMER" for e in events)


async def test_connection_failure_is_reported_generically() -> None:
    adapter, _, _ = make_adapter(transport=FakeTransport(start_error=ConnectionError("ice failed")))

    assert not await adapter.start()

    assert adapter.error == ERROR_CONNECT_FAILED
    assert isinstance(adapter.last_failure, SessionConnectionError)
    assert adapter.error != ERROR_MIC_PERMISSION_DENIED


def test_classify_start_failure() -> None:
    assert isinstance(classify_start_failure(PermissionError()), MicrophonePermissionDenied)
    assert isinstance(classify_start_failure(TimeoutError()), SessionConnectionError)
    assert isinstance(classify_start_failure(RuntimeError()), SessionConnectionError)

    already = SessionNotConfigured()
    assert classify_start_failure(already) is already


# ---------------------------------------------------------------------
# End
# ---------------------------------------------------------------------

async def test_end_failure_is_logged_and_swallowed(events: list[dict[str, Any]]) -> None:
    transport = FakeTransport(end_error=RuntimeError("already closed"))
    adapter, signals, _ = make_adapter(transport=transport)
    await adapter.start()
    await adapter.on_connect()
    await adapter.on_agent_activity(thinking=True, speaking=False)

    await adapter.end()

    assert transport.ended == 1
    assert not adapter.is_open
    assert adapter.messages == ()
    assert adapter.error is None
    assert adapter.connection_status is ConnectionStatus.DISCONNECTED
    assert signals[-1].connected is False
    assert signals[-1].tutor_thinking is False

    failed = [e for e in events if e["event_type"] == "SESSION_END_FAILED"]
    assert failed[0]["exception"] == "RuntimeError"
    assert failed[0]["message"] == "already closed"


# ---------------------------------------------------------------------
# Transport callbacks
# ---------------------------------------------------------------------

async def test_connect_appends_greeting_and_publishes_connected() -> None:
    adapter, signals, messages = make_adapter()
    await adapter.start()

    await adapter.on_connect()

    assert adapter.connection_status is ConnectionStatus.CONNECTED
    assert signals[-1].connected is True
    assert [(m.role, m.text) for m in messages] == [("agent", SESSION_GREETING_TEXT)]


async def test_messages_keep_arrival_order_and_roles() -> None:
    adapter, _, _ = make_adapter()
    await adapter.on_connect()

    await adapter.on_message("user", "what is a fraction?")
    await adapter.on_message("ai", "A part of a whole.")
    await adapter.on_message("user", "")

    assert [(m.role, m.text) for m in adapter.messages] == [
        ("agent", SESSION_GREETING_TEXT),
        ("user", "what is a fraction?"),
        ("agent", "A part of a whole."),
    ]


async def test_on_error_sets_connection_lost_message() -> None:
    adapter, _, _ = make_adapter()

    await adapter.on_error("socket closed")

    assert adapter.error == ERROR_CONNECTION_LOST


async def test_signals_are_pushed_only_on_change() -> None:
    adapter, signals, _ = make_adapter()
    await adapter.on_connect()

    await adapter.on_voice_activity(True)
    await adapter.on_voice_activity(True)
    await adapter.on_agent_activity(thinking=True, speaking=True)
    await adapter.on_mode_change(CommunicationMode.HYBRID)

    assert [s.hearing_student for s in signals] == [False, True, True, True]
    assert signals[-1].tutor_thinking and signals[-1].tutor_speaking
    assert signals[-1].mode is CommunicationMode.HYBRID


async def test_toggle_mute_flips_mic_enabled() -> None:
    adapter, signals, _ = make_adapter()

    assert await adapter.toggle_mute() is False
    assert signals[-1].mic_enabled is False
    assert await adapter.toggle_mute() is True
    assert signals[-1].mic_enabled is True


async def test_apply_signals_replaces_every_field() -> None:
    adapter, signals, _ = make_adapter()
    tuple_in = SignalTuple(
        connected=True,
        mode=CommunicationMode.TEXT,
        mic_enabled=False,
        tutor_thinking=True,
        tutor_speaking=False,
        hearing_student=True,
    )

    await adapter.apply_signals(tuple_in)

    assert adapter.signals == tuple_in
    assert signals == [tuple_in]
    assert adapter.connection_status is ConnectionStatus.CONNECTED
