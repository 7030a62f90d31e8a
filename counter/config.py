"""Process configuration, read once from the environment at startup."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

DEFAULT_PORT = 8080


class ConfigError(ValueError):
    """Raised when an environment variable holds an unusable value."""


@dataclass(frozen=True)
class Config:
    port: int = DEFAULT_PORT
    host: str = "0.0.0.0"  # all interfaces

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Config:
        """Build a Config from ``PORT``; unset or empty means 8080."""
        env = os.environ if environ is None else environ
        raw = env.get("PORT", "").strip()
        if not raw:
            return cls()
        if not (raw.isascii() and raw.isdigit()):
            raise ConfigError(f"PORT must be a plain integer, got {raw!r}")
        port = int(raw)
        if not 0 <= port <= 65535:
            raise ConfigError(f"PORT out of range: {port}")
        return cls(port=port)
