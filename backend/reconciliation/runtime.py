"""
Runtime execution shell for one status engine.

Responsibilities:
- Own reconciliation state
- Call the pure reducer
- Execute commands with side effects (timer, publish, logging, metrics)
- Convert timer expiry into events

Non-responsibilities:
- Deciding which status is desired or when it commits (reducer)
- Rendering (presentation)
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from constants import DEFAULT_DEBOUNCE_TIMING, DebounceTiming
from observability import metrics
from observability.logger import log_event, now_ms
from reconciliation.commands import (
    CancelCommitTimer,
    Command,
    LogEvent,
    PublishStatus,
    RecordMetric,
    StartCommitTimer,
)
from reconciliation.enums.status import VoiceStatus
from reconciliation.events import (
    CommitTimerFired,
    EngineTeardown,
    Event,
    EventType,
    SignalChanged,
)
from reconciliation.reducer import reduce
from reconciliation.signals import SignalTuple
from reconciliation.state_dataclass import ReconciliationState


# ---------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------

StatusSink = Callable[[VoiceStatus], Awaitable[None]]
SleepFn = Callable[[float], Awaitable[None]]
ClockFn = Callable[[], int]


class StatusEngine:
    """
    Runtime boundary for one voice status indicator.

    Responsibilities:
    - Own the authoritative ReconciliationState
    - Act as the single event sink (signal updates, timer expiry, teardown)
    - Invoke the pure reducer exactly once per event
    - Execute emitted commands in order, after state is swapped in

    Guarantees:
    - At most one commit timer task exists at any time
    - A timer that fires after being superseded is gated by commit_id
    - After shutdown() no timer is alive and no status is published
    """

    def __init__(
        self,
        *,
        timing: DebounceTiming | None = None,
        session_id: str | None = None,
        sleep: SleepFn = asyncio.sleep,
        clock: ClockFn = now_ms,
    ) -> None:
        self._state = ReconciliationState(timing=timing or DEFAULT_DEBOUNCE_TIMING)
        self._session_id = session_id
        self._sleep = sleep
        self._clock = clock

        self._commit_timer: asyncio.Task[None] | None = None
        self._commit_timer_id: int | None = None
        self._subscribers: list[StatusSink] = []

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> ReconciliationState:
        """
        Current immutable reconciliation state.

        Only the runtime swaps it, via the reducer.
        """
        return self._state

    @property
    def committed(self) -> VoiceStatus:
        """The status currently shown."""
        return self._state.committed

    @property
    def has_pending_timer(self) -> bool:
        """True while a commit timer task is alive."""
        return self._commit_timer is not None and not self._commit_timer.done()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def subscribe(self, sink: StatusSink) -> None:
        """Register a consumer of committed statuses (push model)."""
        self._subscribers.append(sink)

    async def on_signal_changed(self, signals: SignalTuple) -> None:
        """
        Entry point for the signal source.

        Call on every upstream change; redundant calls are harmless.
        """
        await self.handle_event(
            SignalChanged(
                event_type=EventType.SIGNAL_CHANGED,
                ts_ms=self._clock(),
                signals=signals,
            )
        )

    async def handle_event(self, event: Event) -> None:
        """
        Process a single event.

        1. Reduce (state, event)
        2. Swap in the new state
        3. Execute commands in emitted order
        """
        new_state, commands = reduce(self._state, event)
        self._state = new_state

        for cmd in commands:
            await self._execute_command(cmd)

    async def shutdown(self) -> None:
        """
        Tear the engine down.

        Cancels the commit timer, waits for it to finish, then marks the
        state torn down so late events become no-ops.
        """
        task = self._commit_timer
        self._cancel_commit_timer()
        if task is not None and task is not asyncio.current_task():
            await asyncio.gather(task, return_exceptions=True)

        await self.handle_event(
            EngineTeardown(
                event_type=EventType.ENGINE_TEARDOWN,
                ts_ms=self._clock(),
            )
        )
        self._subscribers.clear()

    # ------------------------------------------------------------------
    # Command execution (side effects)
    # ------------------------------------------------------------------

    async def _execute_command(self, cmd: Command) -> None:
        if isinstance(cmd, LogEvent):
            log_event({
                **cmd.event,
                "session_id": self._session_id,
            })

        elif isinstance(cmd, StartCommitTimer):
            self._start_commit_timer(
                commit_id=cmd.commit_id,
                duration_ms=cmd.duration_ms,
            )

        elif isinstance(cmd, CancelCommitTimer):
            if self._commit_timer_id == cmd.commit_id:
                self._cancel_commit_timer()

        elif isinstance(cmd, PublishStatus):
            for sink in list(self._subscribers):
                try:
                    await sink(cmd.status)
                except Exception as exc:  # pylint: disable=broad-exception-caught
                    log_event({
                        "ts_ms": self._clock(),
                        "event_type": "STATUS_SINK_FAILED",
                        "session_id": self._session_id,
                        "status": cmd.status,
                        "exception": type(exc).__name__,
                        "message": str(exc),
                    })

        elif isinstance(cmd, RecordMetric):
            metrics.record_value(
                cmd.name,
                cmd.value_ms,
                session_id=self._session_id,
            )

        else:
            log_event({
                "ts_ms": self._clock(),
                "event_type": "COMMAND_NOT_HANDLED",
                "session_id": self._session_id,
                "command_type": type(cmd).__name__,
            })

    # ------------------------------------------------------------------
    # Timer management
    # ------------------------------------------------------------------

    def _start_commit_timer(self, *, commit_id: int, duration_ms: int) -> None:
        """
        Start (or replace) the single commit timer.

        The timer re-enters handle_event() on expiry, keeping the single
        event entry point.
        """
        self._cancel_commit_timer()

        async def _timer_task() -> None:
            try:
                await self._sleep(duration_ms / 1000.0)
            except asyncio.CancelledError:
                return

            if self._commit_timer_id == commit_id:
                self._commit_timer = None
                self._commit_timer_id = None

            # Nobody awaits this task; failures end here.
            try:
                await self.handle_event(
                    CommitTimerFired(
                        event_type=EventType.COMMIT_TIMER_FIRED,
                        ts_ms=self._clock(),
                        commit_id=commit_id,
                    )
                )
            except Exception as exc:  # pylint: disable=broad-exception-caught
                log_event({
                    "ts_ms": self._clock(),
                    "event_type": "COMMIT_TIMER_FAILED",
                    "session_id": self._session_id,
                    "commit_id": commit_id,
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })

        self._commit_timer_id = commit_id
        self._commit_timer = asyncio.create_task(_timer_task())

    def _cancel_commit_timer(self) -> None:
        """Cancel the commit timer if one is alive. Idempotent."""
        task = self._commit_timer
        self._commit_timer = None
        self._commit_timer_id = None
        if (
            task is not None
            and not task.done()
            and task is not asyncio.current_task()
        ):
            task.cancel()
