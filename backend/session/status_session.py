"""
Status session container.

- Owns one session id and every per-session component
- Wires signal source -> engine -> voice presenter -> client, and
  mic tracker -> mic presenter -> client
- Owned and driven by StatusGateway
- NOT a state machine; contains no reconciliation logic
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from config import AppConfig
from observability.logger import log_event, now_ms
from presentation.presenter import Presentation, StatusPresenter
from reconciliation.enums.mic_status import MicStatus
from reconciliation.enums.status import VoiceStatus
from reconciliation.mic_status import MicStatusTracker
from reconciliation.runtime import StatusEngine
from reconciliation.signals import SignalTuple
from session.lifecycle import LiveSessionAdapter
from session.messages import SessionMessage
from session.relay import ClientMicrophonePermission, ClientRelayTransport


OutboundSink = Callable[[dict[str, Any]], Awaitable[None]]
SleepFn = Callable[[float], Awaitable[None]]
ClockFn = Callable[[], int]


@dataclass
class StatusSession:
    """Mutable runtime container for one rendered session view."""

    # ------------------------------------------------------------------
    # Identity / wiring inputs
    # ------------------------------------------------------------------

    session_id: str
    config: AppConfig
    send: OutboundSink
    sleep: SleepFn = asyncio.sleep
    clock: ClockFn = now_ms
    created_at: float = field(default_factory=time.time)

    # ------------------------------------------------------------------
    # Components (constructed in __post_init__)
    # ------------------------------------------------------------------

    permissions: ClientMicrophonePermission = field(init=False)
    lifecycle: LiveSessionAdapter = field(init=False)
    engine: StatusEngine = field(init=False)
    mic_tracker: MicStatusTracker = field(init=False)
    voice_presenter: StatusPresenter[VoiceStatus] = field(init=False)
    mic_presenter: StatusPresenter[MicStatus] = field(init=False)
    closed: bool = field(init=False, default=False)

    def __post_init__(self) -> None:
        self.permissions = ClientMicrophonePermission()
        self.lifecycle = LiveSessionAdapter(
            transport=ClientRelayTransport(self.send),
            permissions=self.permissions,
            agent_id=self.config.convai_agent_id,
            session_id=self.session_id,
            clock=self.clock,
        )
        self.engine = StatusEngine(
            timing=self.config.debounce_timing(),
            session_id=self.session_id,
            sleep=self.sleep,
            clock=self.clock,
        )
        self.mic_tracker = MicStatusTracker(
            session_id=self.session_id,
            sleep=self.sleep,
            clock=self.clock,
        )
        self.voice_presenter = StatusPresenter(
            initial=VoiceStatus.HIDDEN,
            name="voice_status",
            pulse_ms=self.config.status_pulse_ms,
            session_id=self.session_id,
            sleep=self.sleep,
            clock=self.clock,
        )
        self.mic_presenter = StatusPresenter(
            initial=MicStatus.MIC_OFF,
            name="mic_status",
            pulse_ms=self.config.status_pulse_ms,
            session_id=self.session_id,
            sleep=self.sleep,
            clock=self.clock,
        )

        self.lifecycle.subscribe_signals(self._on_signals)
        self.lifecycle.subscribe_messages(self._on_message)
        self.engine.subscribe(self._on_voice_status)
        self.voice_presenter.subscribe(self._on_voice_render)
        self.mic_tracker.subscribe(self._on_mic_status)
        self.mic_presenter.subscribe(self._on_mic_render)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    async def shutdown(self) -> None:
        """
        Cancel every outstanding timer.

        Safe to call twice; nothing is sent to the client afterwards.
        """
        if self.closed:
            return
        self.closed = True

        await self.engine.shutdown()
        await self.mic_tracker.shutdown()
        await self.voice_presenter.shutdown()
        await self.mic_presenter.shutdown()

        log_event({
            "ts_ms": self.clock(),
            "event_type": "STATUS_SESSION_CLOSED",
            "session_id": self.session_id,
            "lifetime_s": round(time.time() - self.created_at, 3),
        })

    # ------------------------------------------------------------------
    # Observability helpers (read-only)
    # ------------------------------------------------------------------

    def log_context(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "connection_status": self.lifecycle.connection_status.value,
            "committed_status": self.engine.committed.value,
            "mic_status": self.mic_tracker.status.value,
        }

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    async def _on_signals(self, signals: SignalTuple) -> None:
        await self.engine.on_signal_changed(signals)
        # A closed session has no mic; drop any pending pill change too.
        if not signals.connected:
            await self.mic_tracker.observe(MicStatus.MIC_OFF, immediate=True)

    async def _on_voice_status(self, status: VoiceStatus) -> None:
        await self.voice_presenter.present(status)

    async def _on_mic_status(self, status: MicStatus) -> None:
        await self.mic_presenter.present(status)

    async def _on_voice_render(self, presentation: Presentation | None) -> None:
        await self._push({
            "type": "STATUS",
            "presentation": None if presentation is None else presentation.to_dict(),
        })

    async def _on_mic_render(self, presentation: Presentation | None) -> None:
        await self._push({
            "type": "MIC_STATUS",
            "presentation": None if presentation is None else presentation.to_dict(),
        })

    async def _on_message(self, message: SessionMessage) -> None:
        await self._push({"type": "MESSAGE_LOGGED", "message": message.to_dict()})

    async def _push(self, msg: dict[str, Any]) -> None:
        if self.closed:
            return
        await self.send(msg)
