"""
Mic pill hysteresis.

Smooths raw mic-status observations (speech detected, noise detected,
tutor playback, ...) into the committed MicStatus shown in the mic pill.

Rules:
- mic_off, processing and tutor_speaking are authoritative: immediate.
- Entering / leaving "hearing you" and "ignoring noise" is delayed.
- Every observation cancels the pending one; only the latest can commit.

Independent of StatusEngine: different inputs, different windows, its
own single timer.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from constants import DEFAULT_MIC_HYSTERESIS, MicHysteresis
from observability.logger import log_event, now_ms
from reconciliation.enums.mic_status import MicStatus


MicStatusSink = Callable[[MicStatus], Awaitable[None]]
SleepFn = Callable[[float], Awaitable[None]]
ClockFn = Callable[[], int]

IMMEDIATE_MIC_STATUSES: frozenset[MicStatus] = frozenset({
    MicStatus.MIC_OFF,
    MicStatus.PROCESSING,
    MicStatus.TUTOR_SPEAKING,
})


def hysteresis_delay_ms(
    previous: MicStatus,
    new: MicStatus,
    hysteresis: MicHysteresis,
) -> int:
    """Delay before `new` may replace the committed `previous` (0 = now)."""
    if new in IMMEDIATE_MIC_STATUSES:
        return 0
    if new is MicStatus.HEARING_YOU and previous is not MicStatus.HEARING_YOU:
        return hysteresis.enter_hearing_you_ms
    if previous is MicStatus.HEARING_YOU and new is MicStatus.LISTENING:
        return hysteresis.exit_hearing_you_ms
    if new is MicStatus.IGNORING_NOISE and previous is not MicStatus.IGNORING_NOISE:
        return hysteresis.enter_ignoring_noise_ms
    if previous is MicStatus.IGNORING_NOISE and new is MicStatus.LISTENING:
        return hysteresis.exit_ignoring_noise_ms
    return 0


class MicStatusTracker:
    """
    Committed mic status with hysteresis.

    Lifecycle:
    1. Upstream calls observe(status) on every raw change
    2. The tracker commits now, or schedules a single delayed commit
    3. Committed changes are pushed to subscribers
    4. shutdown() cancels any pending commit
    """

    def __init__(
        self,
        *,
        initial: MicStatus = MicStatus.MIC_OFF,
        hysteresis: MicHysteresis | None = None,
        session_id: str | None = None,
        sleep: SleepFn = asyncio.sleep,
        clock: ClockFn = now_ms,
    ) -> None:
        self._status = initial
        self._hysteresis = hysteresis or DEFAULT_MIC_HYSTERESIS
        self._session_id = session_id
        self._sleep = sleep
        self._clock = clock

        self._pending: MicStatus | None = None
        self._timer: asyncio.Task[None] | None = None
        self._subscribers: list[MicStatusSink] = []
        self._closed = False

    @property
    def status(self) -> MicStatus:
        return self._status

    @property
    def pending(self) -> MicStatus | None:
        return self._pending

    def subscribe(self, sink: MicStatusSink) -> None:
        self._subscribers.append(sink)

    async def observe(self, status: MicStatus, *, immediate: bool = False) -> None:
        """Feed one raw observation."""
        if self._closed:
            return

        self._cancel_timer()

        delay_ms = 0 if immediate else hysteresis_delay_ms(
            self._status, status, self._hysteresis
        )

        if delay_ms == 0:
            await self._commit(status, source="immediate")
            return

        self._pending = status
        log_event({
            "ts_ms": self._clock(),
            "event_type": "MIC_STATUS_DEFERRED",
            "session_id": self._session_id,
            "committed": self._status,
            "pending": status,
            "delay_ms": delay_ms,
        })

        async def _timer_task() -> None:
            try:
                await self._sleep(delay_ms / 1000.0)
            except asyncio.CancelledError:
                return

            if self._closed or self._pending is not status:
                return
            self._timer = None
            await self._commit(status, source="hysteresis")

        self._timer = asyncio.create_task(_timer_task())

    async def shutdown(self) -> None:
        """Cancel the pending commit and stop accepting observations."""
        self._closed = True
        task = self._timer
        self._cancel_timer()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        self._subscribers.clear()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _commit(self, status: MicStatus, *, source: str) -> None:
        self._pending = None
        if status is self._status:
            return

        previous = self._status
        self._status = status
        log_event({
            "ts_ms": self._clock(),
            "event_type": "MIC_STATUS_COMMITTED",
            "session_id": self._session_id,
            "from_status": previous,
            "to_status": status,
            "source": source,
        })
        for sink in list(self._subscribers):
            try:
                await sink(status)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                log_event({
                    "ts_ms": self._clock(),
                    "event_type": "MIC_STATUS_SINK_FAILED",
                    "session_id": self._session_id,
                    "status": status,
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })

    def _cancel_timer(self) -> None:
        task = self._timer
        self._timer = None
        self._pending = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
