# pylint: disable=missing-module-docstring,missing-function-docstring
from typing import Any

from conftest import FakeClock

from presentation.catalog import (
    MIC_STATUS_DISPLAY,
    VOICE_STATUS_DISPLAY,
    display_for,
)
from presentation.presenter import (
    Presentation,
    StatusPresenter,
    catalog_labels,
    render,
)
from reconciliation.enums.mic_status import MicStatus
from reconciliation.enums.status import VoiceStatus


def make_presenter(
    clock: FakeClock, initial: VoiceStatus = VoiceStatus.LISTENING
) -> tuple[StatusPresenter[VoiceStatus], list[Presentation | None]]:
    renders: list[Presentation | None] = []

    async def sink(presentation: Presentation | None) -> None:
        renders.append(presentation)

    presenter: StatusPresenter[VoiceStatus] = StatusPresenter(
        initial=initial,
        name="voice_status",
        pulse_ms=2000,
        session_id="sess_view",
        sleep=clock.sleep,
    )
    presenter.subscribe(sink)
    return presenter, renders


# ---------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------

def test_every_visible_voice_status_has_display_metadata() -> None:
    for status in VoiceStatus:
        if status is VoiceStatus.HIDDEN:
            assert display_for(status) is None
        else:
            display = display_for(status)
            assert display is not None
            assert display.label
            assert display.aria_label


def test_every_mic_status_has_display_metadata() -> None:
    assert set(MIC_STATUS_DISPLAY) == set(MicStatus)


def test_only_hearing_and_thinking_animate_in_voice_indicator() -> None:
    animated = {s for s, d in VOICE_STATUS_DISPLAY.items() if d.animated}
    assert animated == {VoiceStatus.HEARING_YOU, VoiceStatus.THINKING}


def test_display_lookup_distinguishes_indicators() -> None:
    # Both enums carry "hearing_you"; each maps to its own label.
    voice = display_for(VoiceStatus.HEARING_YOU)
    mic = display_for(MicStatus.HEARING_YOU)
    assert voice is not None and mic is not None
    assert voice.label == "Hearing you..."
    assert mic.label == "Hearing You"


def test_catalog_labels_are_keyed_by_wire_value() -> None:
    labels = catalog_labels(VOICE_STATUS_DISPLAY)
    assert labels["listening"] == "Tutor is listening..."
    assert "hidden" not in labels


# ---------------------------------------------------------------------
# Pure render
# ---------------------------------------------------------------------

def test_hidden_renders_nothing() -> None:
    assert render(VoiceStatus.HIDDEN) is None


def test_render_copies_display_metadata() -> None:
    presentation = render(VoiceStatus.SPEAKING, is_pulsing=True)
    assert presentation is not None
    assert presentation.to_dict() == {
        "status": "speaking",
        "label": "Tutor is speaking...",
        "affect": "speaker",
        "category": "accent",
        "aria_label": "Tutor is speaking",
        "is_pulsing": True,
    }


# ---------------------------------------------------------------------
# Pulse flag
# ---------------------------------------------------------------------

async def test_animated_status_pulses_for_window(clock: FakeClock) -> None:
    presenter, renders = make_presenter(clock)

    await presenter.present(VoiceStatus.THINKING)
    assert presenter.is_pulsing

    await clock.advance(1999)
    assert presenter.is_pulsing

    await clock.advance(1)
    assert not presenter.is_pulsing
    assert [r.is_pulsing for r in renders if r is not None] == [True, False]


async def test_new_change_restarts_pulse_window(clock: FakeClock) -> None:
    presenter, _ = make_presenter(clock)

    await presenter.present(VoiceStatus.HEARING_YOU)
    await clock.advance(1500)
    await presenter.present(VoiceStatus.THINKING)
    await clock.advance(1500)
    assert presenter.is_pulsing

    await clock.advance(500)
    assert not presenter.is_pulsing


async def test_non_animated_change_clears_pulse(clock: FakeClock) -> None:
    presenter, renders = make_presenter(clock)

    await presenter.present(VoiceStatus.THINKING)
    await presenter.present(VoiceStatus.SPEAKING)

    assert not presenter.is_pulsing
    await clock.advance(5000)
    assert [r.status for r in renders if r is not None] == ["thinking", "speaking"]
    assert clock.pending_sleepers == 0


async def test_same_status_is_not_rerendered(clock: FakeClock) -> None:
    presenter, renders = make_presenter(clock)

    await presenter.present(VoiceStatus.LISTENING)
    assert renders == []


async def test_hidden_pushes_none(clock: FakeClock) -> None:
    presenter, renders = make_presenter(clock)

    await presenter.present(VoiceStatus.HIDDEN)

    assert renders == [None]
    assert presenter.presentation is None


async def test_shutdown_stops_pulse_timer(
    clock: FakeClock, events: list[dict[str, Any]]
) -> None:
    presenter, renders = make_presenter(clock)

    await presenter.present(VoiceStatus.HEARING_YOU)
    await clock.advance(10)
    await presenter.shutdown()
    await clock.advance(5000)
    await presenter.present(VoiceStatus.SPEAKING)

    assert len(renders) == 1
    rendered = [e for e in events if e["event_type"] == "STATUS_RENDERED"]
    assert rendered == [{
        "ts_ms": rendered[0]["ts_ms"],
        "event_type": "STATUS_RENDERED",
        "indicator": "voice_status",
        "session_id": "sess_view",
        "status": "hearing_you",
        "is_pulsing": True,
    }]


# ---------------------------------------------------------------------
# Failing consumers / clock
# ---------------------------------------------------------------------

async def test_failing_sink_on_pulse_expiry_is_logged(
    clock: FakeClock, events: list[dict[str, Any]]
) -> None:
    presenter: StatusPresenter[VoiceStatus] = StatusPresenter(
        initial=VoiceStatus.LISTENING,
        name="voice_status",
        pulse_ms=2000,
        session_id="sess_view",
        sleep=clock.sleep,
        clock=clock.now,
    )
    calls: list[Presentation | None] = []

    async def flaky_socket(presentation: Presentation | None) -> None:
        calls.append(presentation)
        raise RuntimeError("websocket closed")

    presenter.subscribe(flaky_socket)

    await presenter.present(VoiceStatus.HEARING_YOU)
    await clock.advance(2000)

    assert len(calls) == 2
    assert presenter.is_pulsing is False
    failed = [e for e in events if e["event_type"] == "RENDER_SINK_FAILED"]
    assert [e["ts_ms"] for e in failed] == [0, 2000]
    assert all(e["indicator"] == "voice_status" for e in failed)

    rendered = [e for e in events if e["event_type"] == "STATUS_RENDERED"]
    assert [e["ts_ms"] for e in rendered] == [0, 2000]
