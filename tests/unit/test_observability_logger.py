# pylint: disable=missing-module-docstring,missing-function-docstring

import json
from typing import Any

import pytest

from observability import logger
from reconciliation.enums.status import VoiceStatus


def test_log_event_emits_valid_jsonl(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """
    Contract:
    - log_event emits exactly one JSONL line
    - payload is serialized as-is
    - output sink is patchable
    """
    captured: list[str] = []

    def fake_print(line: str) -> None:
        captured.append(line)

    # Patch the explicit output sink used by logger
    monkeypatch.setattr(logger, "_print", fake_print)
    monkeypatch.setattr(logger, "_enabled", True)

    payload: dict[str, Any] = {
        "event_type": "TEST",
        "value": 123,
    }

    logger.log_event(payload)

    # Exactly one line emitted
    assert len(captured) == 1
    assert "\n" not in captured[0]

    # Payload must be preserved exactly
    assert json.loads(captured[0]) == payload


def test_enums_serialize_as_their_value(events: list[dict[str, Any]]) -> None:
    logger.log_event({"event_type": "TEST", "status": VoiceStatus.HEARING_YOU})

    assert events == [{"event_type": "TEST", "status": "hearing_you"}]


def test_unserializable_payload_falls_back_instead_of_raising(
    events: list[dict[str, Any]],
) -> None:
    logger.log_event({"ts_ms": 5, "event_type": "TEST", "obj": object()})

    assert len(events) == 1
    assert events[0]["event_type"] == "LOGGER_SERIALIZATION_ERROR"
    assert events[0]["ts_ms"] == 5
    assert "object" in events[0]["original_event_repr"]


def test_disabled_logger_emits_nothing(
    monkeypatch: pytest.MonkeyPatch, events: list[dict[str, Any]]
) -> None:
    logger.set_enabled(False)
    try:
        logger.log_event({"event_type": "TEST"})
    finally:
        logger.set_enabled(True)

    assert events == []
