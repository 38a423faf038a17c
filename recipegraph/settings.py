"""Application settings loaded from environment (and .env).

This module provides a small Settings holder backed by environment variables.
Keep this file simple and import `settings` from other modules.
"""
from __future__ import annotations

from dataclasses import dataclass
import os


def _get(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name)
    if v is None:
        return default
    return v


@dataclass
class Settings:
    # Cooking session
    # Seconds between timer ticks; timers count down one second per tick.
    TICK_SECONDS: str = _get("TICK_SECONDS", "1.0")
    # Ring the terminal bell when a step timer runs out (0 disables)
    TIMER_BELL: str = _get("TIMER_BELL", "1")

    # Logging configuration
    # LOG_LEVEL can be DEBUG, INFO, WARNING, ERROR, or CRITICAL
    LOG_LEVEL: str = _get("LOG_LEVEL", "INFO")
    # Optional path to write logs to a file; if unset, logs go to stderr
    LOG_FILE: str | None = _get("LOG_FILE", None)

    def tick_interval(self) -> float:
        try:
            value = float(self.TICK_SECONDS)
        except (TypeError, ValueError):
            raise RuntimeError(f"TICK_SECONDS must be a number, got {self.TICK_SECONDS!r}")
        if value <= 0:
            raise RuntimeError(f"TICK_SECONDS must be positive, got {value}")
        return value

    @property
    def timer_bell(self) -> bool:
        return (self.TIMER_BELL or "").strip().lower() not in ("0", "false", "no", "off", "")


settings = Settings()


def validate_required() -> None:
    """Validate settings values and raise a helpful RuntimeError if any are unusable.

    This function checks values at runtime so callers can load a .env first.
    """
    problems = []
    try:
        Settings(TICK_SECONDS=_get("TICK_SECONDS", "1.0")).tick_interval()
    except RuntimeError as e:
        problems.append(str(e))
    level = (_get("LOG_LEVEL", "INFO") or "").upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        problems.append(f"LOG_LEVEL must be DEBUG, INFO, WARNING, ERROR or CRITICAL, got {level!r}")
    if problems:
        msg = (
            "Invalid configuration: "
            + "; ".join(problems)
            + "\nPlease fix them in your .env or environment and try again."
        )
        raise RuntimeError(msg)
