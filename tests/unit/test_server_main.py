# pylint: disable=missing-module-docstring,missing-function-docstring
from typing import Any

import pytest

from server import main as server_main


@pytest.fixture
def uvicorn_calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    def fake_run(app: str, **kwargs: Any) -> None:
        calls.append({"app": app, **kwargs})

    monkeypatch.setattr(server_main.uvicorn, "run", fake_run)
    monkeypatch.setattr(server_main, "load_dotenv", lambda: None)
    for name in ("HOST", "PORT", "ENV", "LOG_LEVEL", "STATUS_PULSE_MS"):
        monkeypatch.delenv(name, raising=False)
    return calls


def test_main_passes_configured_log_level(
    uvicorn_calls: list[dict[str, Any]], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.setenv("ENV", "prod")
    monkeypatch.setenv("PORT", "9001")

    server_main.main()

    assert uvicorn_calls == [{
        "app": "server.asgi:app",
        "host": "0.0.0.0",
        "port": 9001,
        "log_level": "warning",
        "reload": False,
    }]


def test_main_refuses_to_start_with_bad_config(
    uvicorn_calls: list[dict[str, Any]], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("STATUS_PULSE_MS", "soon")

    with pytest.raises(ValueError, match="STATUS_PULSE_MS"):
        server_main.main()

    assert uvicorn_calls == []
