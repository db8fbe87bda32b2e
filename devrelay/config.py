"""Runtime configuration for the relay server, read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


def _env_int(env: dict[str, str], *names: str, default: int) -> int:
    for name in names:
        raw = env.get(name)
        if raw is None or raw == "":
            continue
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    return default


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_bool(env: dict[str, str], name: str, default: bool) -> bool:
    raw = env.get(name, "").strip().lower()
    if raw == "":
        return default
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ValueError(f"{name} must be on/off, got {env[name]!r}")


@dataclass
class RelaySettings:
    """Relay server settings; :meth:`from_env` lists the variable names."""

    host: str = "0.0.0.0"
    port: int = 3000
    data_dir: Path = field(default_factory=lambda: Path("./data"))
    timezone: str = "Asia/Dhaka"
    static_dir: Path = field(default_factory=lambda: Path("public"))
    session_queue_size: int = 100  # outbound messages buffered per dashboard
    log_level: str = "INFO"
    history: bool = True  # store heartbeats in db_path; off selects NullLogSink

    def __post_init__(self) -> None:
        self.data_dir = Path(self.data_dir)
        self.static_dir = Path(self.static_dir)
        if self.session_queue_size < 1:
            raise ValueError("session_queue_size must be at least 1")
        _ = self.tz  # fail fast on an unknown zone

    @property
    def tz(self) -> ZoneInfo:
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone: {self.timezone!r}") from None

    @property
    def db_path(self) -> Path:
        return self.data_dir / "devrelay.db"

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> RelaySettings:
        env = dict(os.environ if env is None else env)
        defaults = cls()
        settings = cls(
            host=env.get("RELAY_HOST", defaults.host),
            port=_env_int(env, "RELAY_PORT", "PORT", default=defaults.port),
            data_dir=Path(env.get("RELAY_DATA_DIR", str(defaults.data_dir))),
            timezone=env.get("RELAY_TIMEZONE", defaults.timezone),
            static_dir=Path(env.get("RELAY_STATIC_DIR", str(defaults.static_dir))),
            session_queue_size=_env_int(
                env, "RELAY_SESSION_QUEUE", default=defaults.session_queue_size
            ),
            log_level=env.get("RELAY_LOG_LEVEL", defaults.log_level).upper(),
            history=_env_bool(env, "RELAY_HISTORY", defaults.history),
        )
        logger.debug("Loaded settings: %s", settings)
        return settings
