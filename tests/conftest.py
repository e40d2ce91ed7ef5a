"""Shared test fixtures: a deterministic clock and a log capture."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from observability import logger


async def settle(rounds: int = 20) -> None:
    """Let every ready task run until the loop goes quiet."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeClock:
    """
    Injected clock + sleep pair.

    Timers created with `sleep` only wake when the test calls `advance`,
    so debounce windows are exercised without wall-clock waits.
    """

    def __init__(self, start_ms: int = 0) -> None:
        self.time_ms = start_ms
        self._sleepers: list[tuple[int, asyncio.Future[None]]] = []

    def now(self) -> int:
        return self.time_ms

    async def sleep(self, seconds: float) -> None:
        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._sleepers.append((self.time_ms + round(seconds * 1000), fut))
        await fut

    @property
    def pending_sleepers(self) -> int:
        return sum(1 for _, fut in self._sleepers if not fut.done())

    async def advance(self, ms: int) -> None:
        """Move time forward, waking sleepers in deadline order."""
        target = self.time_ms + ms
        await settle()

        while True:
            due = [
                deadline for deadline, fut in self._sleepers
                if deadline <= target and not fut.done()
            ]
            if not due:
                break

            wake_at = min(due)
            self.time_ms = wake_at
            remaining: list[tuple[int, asyncio.Future[None]]] = []
            for deadline, fut in self._sleepers:
                if deadline <= wake_at:
                    if not fut.done():
                        fut.set_result(None)
                else:
                    remaining.append((deadline, fut))
            self._sleepers = remaining
            await settle()

        self.time_ms = target
        self._sleepers = [(d, f) for d, f in self._sleepers if not f.done()]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def events(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    """Every event written through observability.logger, decoded."""
    captured: list[dict[str, Any]] = []

    def fake_print(line: str) -> None:
        captured.append(json.loads(line))

    monkeypatch.setattr(logger, "_print", fake_print)
    monkeypatch.setattr(logger, "_enabled", True)
    return captured
