# pylint: disable=missing-module-docstring,missing-function-docstring
from typing import Any

import pytest

from observability import metrics


def test_timed_emits_one_metric_and_leaks_no_timer(events: list[dict[str, Any]]) -> None:
    before = metrics.active_timer_count()

    with metrics.timed("session_start_ms", session_id="sess_m", details={"k": "v"}):
        pass

    assert metrics.active_timer_count() == before
    assert len(events) == 1
    assert events[0]["event_type"] == "METRIC_TIMER"
    assert events[0]["metric"] == "session_start_ms"
    assert events[0]["session_id"] == "sess_m"
    assert events[0]["details"] == {"k": "v"}
    assert events[0]["value_ms"] >= 0


def test_timed_stops_timer_when_block_raises(events: list[dict[str, Any]]) -> None:
    before = metrics.active_timer_count()

    with pytest.raises(RuntimeError):
        with metrics.timed("failing_block_ms"):
            raise RuntimeError("boom")

    assert metrics.active_timer_count() == before
    assert [e["metric"] for e in events] == ["failing_block_ms"]


def test_stop_timer_twice_returns_none(events: list[dict[str, Any]]) -> None:
    timer_id = metrics.start_timer("manual_ms")

    assert metrics.stop_timer(timer_id) is not None
    assert metrics.stop_timer(timer_id) is None
    assert len(events) == 1


def test_record_value_emits_metric_value(events: list[dict[str, Any]]) -> None:
    metrics.record_value("hearing_episode_ms", 850, session_id="sess_m")

    assert events[0]["event_type"] == "METRIC_VALUE"
    assert events[0]["metric"] == "hearing_episode_ms"
    assert events[0]["value_ms"] == 850
    assert events[0]["details"] == {}
