"""Configuration for MC Control.

All settings are read once from the environment into immutable dataclasses.
`RconConfig` is handed explicitly to every RCON session; nothing here is a
process-wide singleton.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .constants import (
    DEFAULT_CONTROL_TIMEOUT,
    DEFAULT_GAME_PORT,
    DEFAULT_HOST,
    DEFAULT_LOG_LINES,
    DEFAULT_LOG_PATH,
    DEFAULT_QUERY_TIMEOUT,
    DEFAULT_RCON_CONNECT_TIMEOUT,
    DEFAULT_RCON_PORT,
    DEFAULT_RCON_READ_TIMEOUT,
    DEFAULT_START_SETTLE_SECONDS,
)


def env_int(environ: Mapping[str, str], key: str, default: int) -> int:
    value = environ.get(key)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def env_float(environ: Mapping[str, str], key: str, default: float) -> float:
    value = environ.get(key)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class RconConfig:
    """Connection parameters for one RCON endpoint."""

    host: str
    port: int
    password: str
    connect_timeout: float = DEFAULT_RCON_CONNECT_TIMEOUT
    read_timeout: float = DEFAULT_RCON_READ_TIMEOUT

    def __repr__(self) -> str:
        # Keep the password out of logs and tracebacks.
        return (
            f"RconConfig(host={self.host!r}, port={self.port!r}, password='***', "
            f"connect_timeout={self.connect_timeout!r}, read_timeout={self.read_timeout!r})"
        )


@dataclass(frozen=True)
class ControlSettings:
    """Typed settings sourced from the environment."""

    host: str = DEFAULT_HOST
    rcon_port: int = DEFAULT_RCON_PORT
    rcon_password: str = ''
    game_port: int = DEFAULT_GAME_PORT
    query_timeout: float = DEFAULT_QUERY_TIMEOUT
    rcon_connect_timeout: float = DEFAULT_RCON_CONNECT_TIMEOUT
    rcon_read_timeout: float = DEFAULT_RCON_READ_TIMEOUT
    control_script: Optional[str] = None
    control_timeout: float = DEFAULT_CONTROL_TIMEOUT
    start_settle_seconds: float = DEFAULT_START_SETTLE_SECONDS
    log_path: str = DEFAULT_LOG_PATH
    log_lines: int = DEFAULT_LOG_LINES

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ControlSettings":
        environ = os.environ if environ is None else environ
        return cls(
            host=environ.get("MINECRAFT_HOST") or DEFAULT_HOST,
            rcon_port=env_int(environ, "MINECRAFT_PORT", DEFAULT_RCON_PORT),
            rcon_password=environ.get("RCON_PASSWORD", ""),
            game_port=env_int(environ, "MINECRAFT_GAME_PORT", DEFAULT_GAME_PORT),
            query_timeout=env_float(environ, "MC_QUERY_TIMEOUT", DEFAULT_QUERY_TIMEOUT),
            rcon_connect_timeout=env_float(environ, "MC_RCON_CONNECT_TIMEOUT", DEFAULT_RCON_CONNECT_TIMEOUT),
            rcon_read_timeout=env_float(environ, "MC_RCON_READ_TIMEOUT", DEFAULT_RCON_READ_TIMEOUT),
            control_script=environ.get("MC_CONTROL_SCRIPT") or None,
            control_timeout=env_float(environ, "MC_CONTROL_TIMEOUT", DEFAULT_CONTROL_TIMEOUT),
            start_settle_seconds=env_float(environ, "MC_START_SETTLE_SECONDS", DEFAULT_START_SETTLE_SECONDS),
            log_path=environ.get("MC_LOG_PATH") or DEFAULT_LOG_PATH,
            log_lines=env_int(environ, "MC_LOG_LINES", DEFAULT_LOG_LINES),
        )

    def rcon_config(self) -> RconConfig:
        return RconConfig(
            host=self.host,
            port=self.rcon_port,
            password=self.rcon_password,
            connect_timeout=self.rcon_connect_timeout,
            read_timeout=self.rcon_read_timeout,
        )

    def __repr__(self) -> str:
        return (
            f"ControlSettings(host={self.host!r}, rcon_port={self.rcon_port!r}, "
            f"game_port={self.game_port!r}, control_script={self.control_script!r})"
        )
