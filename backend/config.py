"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No reconciliation logic
- No behavior constants (see constants.py)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from constants import (
    STATUS_ENTER_HEARING_DEBOUNCE_MS,
    STATUS_EXIT_HEARING_DEBOUNCE_MS,
    STATUS_PULSE_MS,
    STATUS_TRANSITION_DEBOUNCE_MS,
    DebounceTiming,
)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup.
    Passed downward to the server and the per-connection gateway.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str = "dev"
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    enable_json_logs: bool = True

    # ------------------------------------------------------------------
    # Status reconciliation
    # ------------------------------------------------------------------

    enter_hearing_debounce_ms: int = STATUS_ENTER_HEARING_DEBOUNCE_MS
    exit_hearing_debounce_ms: int = STATUS_EXIT_HEARING_DEBOUNCE_MS
    transition_debounce_ms: int = STATUS_TRANSITION_DEBOUNCE_MS
    status_pulse_ms: int = STATUS_PULSE_MS

    # ------------------------------------------------------------------
    # Live session
    # ------------------------------------------------------------------

    convai_agent_id: str | None = None

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    cors_allow_origins: tuple[str, ...] = field(default=("*",))

    def __post_init__(self) -> None:
        # Fail at startup, not on the first debounce.
        self.debounce_timing()
        if self.status_pulse_ms <= 0:
            raise ValueError(
                f"status_pulse_ms must be positive, got {self.status_pulse_ms}"
            )

    def debounce_timing(self) -> DebounceTiming:
        """Return the engine debounce windows (validated)."""
        return DebounceTiming(
            enter_hearing_ms=self.enter_hearing_debounce_ms,
            exit_hearing_ms=self.exit_hearing_debounce_ms,
            transition_ms=self.transition_debounce_ms,
        )

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError if numeric variables are malformed or the debounce
            windows are not ordered exit > enter > transition.
        """
        origins = os.environ.get("CORS_ALLOW_ORIGINS", "*")
        return AppConfig(
            env=os.environ.get("ENV", "dev"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),

            enable_json_logs=os.environ.get("ENABLE_JSON_LOGS", "1") == "1",

            enter_hearing_debounce_ms=_env_int(
                "STATUS_ENTER_HEARING_MS", STATUS_ENTER_HEARING_DEBOUNCE_MS
            ),
            exit_hearing_debounce_ms=_env_int(
                "STATUS_EXIT_HEARING_MS", STATUS_EXIT_HEARING_DEBOUNCE_MS
            ),
            transition_debounce_ms=_env_int(
                "STATUS_TRANSITION_MS", STATUS_TRANSITION_DEBOUNCE_MS
            ),
            status_pulse_ms=_env_int("STATUS_PULSE_MS", STATUS_PULSE_MS),

            convai_agent_id=os.environ.get("CONVAI_AGENT_ID") or None,

            cors_allow_origins=tuple(
                o.strip() for o in origins.split(",") if o.strip()
            ),
        )
