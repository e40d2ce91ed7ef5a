"""
Status presentation adapter.

Maps a committed status to display metadata and owns the short-lived
"just changed" pulse flag.

Rules:
- Never changes which status is shown; that belongs to the engine.
- At most one pulse timer per presenter; a new change restarts it.
- Each status or pulse-flag change re-derives one Presentation and pushes
  it to render subscribers.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Mapping, TypeVar

from constants import STATUS_PULSE_MS
from observability.logger import log_event, now_ms
from presentation.catalog import StatusDisplay, display_for
from reconciliation.enums.mic_status import MicStatus
from reconciliation.enums.status import VoiceStatus


S = TypeVar("S", VoiceStatus, MicStatus)

SleepFn = Callable[[float], Awaitable[None]]
ClockFn = Callable[[], int]


@dataclass(frozen=True)
class Presentation:
    """What the client renders for one status."""
    status: str
    label: str
    affect: str
    category: str
    aria_label: str
    is_pulsing: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "label": self.label,
            "affect": self.affect,
            "category": self.category,
            "aria_label": self.aria_label,
            "is_pulsing": self.is_pulsing,
        }


RenderSink = Callable[[Presentation | None], Awaitable[None]]


def render(status: VoiceStatus | MicStatus, *, is_pulsing: bool = False) -> Presentation | None:
    """Pure mapping; None means render nothing."""
    display: StatusDisplay | None = display_for(status)
    if display is None:
        return None
    return Presentation(
        status=status.value,
        label=display.label,
        affect=display.affect,
        category=display.category,
        aria_label=display.aria_label,
        is_pulsing=is_pulsing,
    )


class StatusPresenter(Generic[S]):
    """
    Stateful renderer for one indicator (voice status or mic pill).

    Remembers the last status rendered. The first status it is given is
    its baseline and never pulses.
    """

    def __init__(
        self,
        *,
        initial: S,
        name: str,
        pulse_ms: int = STATUS_PULSE_MS,
        session_id: str | None = None,
        sleep: SleepFn = asyncio.sleep,
        clock: ClockFn = now_ms,
    ) -> None:
        self._status: S = initial
        self._name = name
        self._pulse_ms = pulse_ms
        self._session_id = session_id
        self._sleep = sleep
        self._clock = clock

        self._pulsing = False
        self._pulse_timer: asyncio.Task[None] | None = None
        self._subscribers: list[RenderSink] = []
        self._closed = False

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def status(self) -> S:
        return self._status

    @property
    def is_pulsing(self) -> bool:
        return self._pulsing

    @property
    def presentation(self) -> Presentation | None:
        return render(self._status, is_pulsing=self._pulsing)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def subscribe(self, sink: RenderSink) -> None:
        self._subscribers.append(sink)

    async def present(self, status: S) -> Presentation | None:
        """
        Show a newly committed status.

        A change to an animated status (re)starts the pulse window; a
        change to a non-animated one ends any running pulse.
        Same-status calls are no-ops.
        """
        if self._closed or status is self._status:
            return self.presentation

        self._status = status
        self._cancel_pulse_timer()

        display = display_for(status)
        if display is not None and display.animated:
            self._pulsing = True
            self._pulse_timer = asyncio.create_task(self._pulse_task())
        else:
            self._pulsing = False

        await self._emit()
        return self.presentation

    async def shutdown(self) -> None:
        """Cancel the pulse timer; no further renders are emitted."""
        self._closed = True
        task = self._pulse_timer
        self._cancel_pulse_timer()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        self._subscribers.clear()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _pulse_task(self) -> None:
        try:
            await self._sleep(self._pulse_ms / 1000.0)
        except asyncio.CancelledError:
            return

        if self._closed:
            return
        self._pulse_timer = None
        self._pulsing = False
        await self._emit()

    async def _emit(self) -> None:
        presentation = self.presentation
        log_event({
            "ts_ms": self._clock(),
            "event_type": "STATUS_RENDERED",
            "indicator": self._name,
            "session_id": self._session_id,
            "status": self._status,
            "is_pulsing": self._pulsing,
        })
        for sink in list(self._subscribers):
            try:
                await sink(presentation)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                log_event({
                    "ts_ms": self._clock(),
                    "event_type": "RENDER_SINK_FAILED",
                    "indicator": self._name,
                    "session_id": self._session_id,
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })

    def _cancel_pulse_timer(self) -> None:
        task = self._pulse_timer
        self._pulse_timer = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()


def catalog_labels(catalog: Mapping[Any, StatusDisplay]) -> dict[str, str]:
    """status value -> label, for SESSION_INIT payloads."""
    return {status.value: display.label for status, display in catalog.items()}
