"""Configuration helpers for deploying the FastAPI save service."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from ..session import RollbackPolicy

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _normalise_path(value: str | None) -> Path | None:
    if value is None:
        return None

    trimmed = value.strip()
    if not trimmed:
        return None

    return Path(trimmed).expanduser()


def _normalise_optional_string(value: str | None) -> str | None:
    if value is None:
        return None

    trimmed = value.strip()
    return trimmed or None


def _normalise_bool(value: str | None, *, name: str, default: bool) -> bool:
    if value is None:
        return default

    trimmed = value.strip().lower()
    if not trimmed:
        return default
    if trimmed in _TRUE_VALUES:
        return True
    if trimmed in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (true/false).")


def _normalise_log_level(value: str | None) -> str:
    if value is None or not value.strip():
        return "INFO"

    level = value.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"STARDEWTRACKER_LOG_LEVEL '{value}' is not a logging level.")
    return level


@dataclass(frozen=True)
class SaveApiSettings:
    """Deployment settings for the save API and player sessions.

    Values are read from environment variables so the service can be
    configured without modifying application code. Empty strings are treated
    as if the variable was unset. Without ``save_root`` records are kept in
    process memory.
    """

    save_root: Path | None = None
    cookie_domain: str | None = None
    rollback_on_failure: bool = False
    log_level: str = "INFO"

    @property
    def rollback_policy(self) -> RollbackPolicy:
        """Return the client rollback policy selected by ``rollback_on_failure``."""

        if self.rollback_on_failure:
            return RollbackPolicy.ROLLBACK
        return RollbackPolicy.KEEP

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "SaveApiSettings":
        """Return settings populated from ``environ``.

        Args:
            environ: Optional mapping of environment variables. When omitted,
                :data:`os.environ` is used.
        """

        source = environ if environ is not None else os.environ

        return cls(
            save_root=_normalise_path(source.get("STARDEWTRACKER_SAVE_ROOT")),
            cookie_domain=_normalise_optional_string(
                source.get("STARDEWTRACKER_COOKIE_DOMAIN")
            ),
            rollback_on_failure=_normalise_bool(
                source.get("STARDEWTRACKER_ROLLBACK_ON_FAILURE"),
                name="STARDEWTRACKER_ROLLBACK_ON_FAILURE",
                default=False,
            ),
            log_level=_normalise_log_level(source.get("STARDEWTRACKER_LOG_LEVEL")),
        )


__all__ = ["SaveApiSettings"]
