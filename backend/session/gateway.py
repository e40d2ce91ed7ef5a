"""
Status gateway.

Responsibilities:
- Owns the StatusSession lifecycle for one WebSocket connection
- Routes inbound JSON messages -> lifecycle adapter / mic tracker
- Answers malformed input with an ERROR message (never raises)
- Tears the session down on disconnect

Still NOT responsible for:
- Any status decision (reconciliation engine)
- Display metadata (presenters)
- Socket I/O (server routes)

Commits happen on debounce timers, not only in response to inbound
messages, so renders are pushed through the `send` callback given to
on_ws_connect. Direct replies come back as a GatewayResult.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping
from uuid import uuid4

from config import AppConfig
from observability.logger import log_event, now_ms
from presentation.catalog import MIC_STATUS_DISPLAY, VOICE_STATUS_DISPLAY
from presentation.presenter import catalog_labels
from reconciliation.enums.mic_status import MicStatus
from reconciliation.enums.mode import CommunicationMode
from reconciliation.signals import SignalDecodeError, decode_signals
from session.status_session import StatusSession


OutboundSink = Callable[[dict[str, Any]], Awaitable[None]]
SleepFn = Callable[[float], Awaitable[None]]
ClockFn = Callable[[], int]

MIC_PERMISSION_OUTCOMES = ("granted", "denied")


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _new_session_id() -> str:
    return f"sess_{uuid4().hex[:12]}"


class GatewayMessageError(ValueError):
    """An inbound message was well-formed JSON but had bad fields."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


def _require_bool(data: Mapping[str, Any], key: str) -> bool:
    value = data.get(key)
    if not isinstance(value, bool):
        raise GatewayMessageError("INVALID_FIELD", f"{key!r} must be a boolean")
    return value


def _require_str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise GatewayMessageError("INVALID_FIELD", f"{key!r} must be a string")
    return value


def _error(code: str, message: str) -> dict[str, Any]:
    return {"type": "ERROR", "code": code, "message": message}


# ------------------------------------------------------------------
# Gateway result
# ------------------------------------------------------------------

@dataclass(frozen=True)
class GatewayResult:
    """
    Return value for gateway boundary methods.

    outbound_json:
        JSON messages to send to the client as a direct reply
    """
    outbound_json: tuple[dict[str, Any], ...] = ()


# ------------------------------------------------------------------
# StatusGateway
# ------------------------------------------------------------------

class StatusGateway:
    """One gateway == one status session."""

    def __init__(
        self,
        *,
        config: AppConfig,
        sleep: SleepFn = asyncio.sleep,
        clock: ClockFn = now_ms,
    ) -> None:
        self._config = config
        self._sleep = sleep
        self._clock = clock
        self.session: StatusSession | None = None

    async def on_ws_connect(self, send: OutboundSink) -> GatewayResult:
        """Called when a WebSocket connection is established."""
        session_id = _new_session_id()
        self.session = StatusSession(
            session_id=session_id,
            config=self._config,
            send=send,
            sleep=self._sleep,
            clock=self._clock,
        )

        log_event({
            "ts_ms": self._clock(),
            "event_type": "STATUS_SESSION_STARTED",
            "session_id": session_id,
            "configured": bool(self._config.convai_agent_id),
        })

        timing = self._config.debounce_timing()
        init_msg: dict[str, Any] = {
            "type": "SESSION_INIT",
            "session_id": session_id,
            "configured": bool(self._config.convai_agent_id),
            "timing": {
                "enter_hearing_ms": timing.enter_hearing_ms,
                "exit_hearing_ms": timing.exit_hearing_ms,
                "transition_ms": timing.transition_ms,
                "pulse_ms": self._config.status_pulse_ms,
            },
            "labels": {
                "voice": catalog_labels(VOICE_STATUS_DISPLAY),
                "mic": catalog_labels(MIC_STATUS_DISPLAY),
            },
        }
        return GatewayResult(outbound_json=(init_msg,))

    async def on_ws_disconnect(self, reason: str | None = None) -> GatewayResult:
        """Called when the WebSocket disconnects."""
        if self.session is None:
            log_event({
                "ts_ms": self._clock(),
                "event_type": "WS_DISCONNECT_WITHOUT_SESSION",
                "reason": reason,
            })
            return GatewayResult()

        log_event({
            "ts_ms": self._clock(),
            "event_type": "WS_DISCONNECTED",
            "reason": reason,
            **self.session.log_context(),
        })
        await self.session.shutdown()
        self.session = None
        return GatewayResult()

    async def on_json_message(self, payload: str) -> GatewayResult:
        """Route one inbound JSON message."""
        if self.session is None:
            log_event({
                "ts_ms": self._clock(),
                "event_type": "MESSAGE_WITHOUT_SESSION",
                "payload_preview": payload[:100],
            })
            return GatewayResult(outbound_json=(_error("NO_SESSION", "no active session"),))

        session_id = self.session.session_id

        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            log_event({
                "ts_ms": self._clock(),
                "event_type": "JSON_DECODE_ERROR",
                "session_id": session_id,
                "error": str(e),
                "payload_preview": payload[:100],
            })
            return GatewayResult(outbound_json=(_error("INVALID_JSON", str(e)),))

        if not isinstance(data, dict):
            log_event({
                "ts_ms": self._clock(),
                "event_type": "JSON_NOT_OBJECT",
                "session_id": session_id,
                "payload_preview": payload[:100],
            })
            return GatewayResult(outbound_json=(
                _error("INVALID_MESSAGE", "message must be a JSON object"),
            ))

        msg_type = data.get("type")
        try:
            return await self._route(msg_type, data)
        except SignalDecodeError as e:
            log_event({
                "ts_ms": self._clock(),
                "event_type": "SIGNAL_DECODE_ERROR",
                "session_id": session_id,
                "msg_type": msg_type,
                "error": str(e),
            })
            return GatewayResult(outbound_json=(_error("INVALID_SIGNALS", str(e)),))
        except GatewayMessageError as e:
            log_event({
                "ts_ms": self._clock(),
                "event_type": "INVALID_MESSAGE",
                "session_id": session_id,
                "msg_type": msg_type,
                "error": str(e),
            })
            return GatewayResult(outbound_json=(_error(e.code, str(e)),))

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    async def _route(self, msg_type: Any, data: Mapping[str, Any]) -> GatewayResult:
        session = self.session
        assert session is not None, "Session must exist before routing"
        lifecycle = session.lifecycle

        if msg_type == "SIGNALS":
            signals = data.get("signals")
            if not isinstance(signals, Mapping):
                raise SignalDecodeError("'signals' must be an object")
            await lifecycle.apply_signals(decode_signals(signals))

        elif msg_type == "SESSION_START":
            permission = data.get("mic_permission", "granted")
            if permission not in MIC_PERMISSION_OUTCOMES:
                raise GatewayMessageError(
                    "INVALID_FIELD",
                    f"'mic_permission' must be 'granted' or 'denied', got {permission!r}",
                )
            session.permissions.granted = permission == "granted"
            ok = await lifecycle.start()
            return GatewayResult(outbound_json=({
                "type": "SESSION_START_RESULT",
                "ok": ok,
                "error": lifecycle.error,
            },))

        elif msg_type == "SESSION_END":
            await lifecycle.end()
            return GatewayResult(outbound_json=({"type": "SESSION_ENDED"},))

        elif msg_type == "SESSION_CONNECTED":
            await lifecycle.on_connect()

        elif msg_type == "SESSION_DISCONNECTED":
            await lifecycle.on_disconnect()

        elif msg_type == "SESSION_ERROR":
            reason = data.get("reason")
            await lifecycle.on_error(reason if isinstance(reason, str) else None)
            return GatewayResult(outbound_json=(
                _error("SESSION_ERROR", lifecycle.error or ""),
            ))

        elif msg_type == "MODE_CHANGED":
            raw_mode = _require_str(data, "mode")
            try:
                mode = CommunicationMode(raw_mode)
            except ValueError as e:
                raise GatewayMessageError("INVALID_FIELD", f"unknown mode: {raw_mode!r}") from e
            await lifecycle.on_mode_change(mode)

        elif msg_type == "MIC_ENABLED":
            await lifecycle.set_mic_enabled(_require_bool(data, "enabled"))

        elif msg_type == "AGENT_ACTIVITY":
            await lifecycle.on_agent_activity(
                thinking=_require_bool(data, "thinking"),
                speaking=_require_bool(data, "speaking"),
            )

        elif msg_type == "VOICE_ACTIVITY":
            await lifecycle.on_voice_activity(_require_bool(data, "hearing"))

        elif msg_type == "MESSAGE":
            await lifecycle.on_message(
                _require_str(data, "source"),
                _require_str(data, "text"),
            )

        elif msg_type == "MIC_STATUS":
            raw_status = _require_str(data, "status")
            try:
                status = MicStatus(raw_status)
            except ValueError as e:
                raise GatewayMessageError(
                    "INVALID_FIELD", f"unknown mic status: {raw_status!r}",
                ) from e
            immediate = data.get("immediate", False)
            await session.mic_tracker.observe(status, immediate=immediate is True)

        else:
            log_event({
                "ts_ms": self._clock(),
                "event_type": "UNKNOWN_MESSAGE_TYPE",
                "msg_type": msg_type,
                "session_id": session.session_id,
            })
            return GatewayResult(outbound_json=(
                _error("UNKNOWN_MESSAGE_TYPE", f"unknown message type: {msg_type!r}"),
            ))

        return GatewayResult()
