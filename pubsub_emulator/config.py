"""Process settings read from the environment (and .env via python-dotenv)."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8010
DEFAULT_DELIVERY_TIMEOUT_SEC = 10.0
DEFAULT_LOG_LEVEL = "INFO"


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    try:
        return int(env.get(key, default))
    except (ValueError, TypeError):
        return default


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    try:
        value = float(env.get(key, default))
    except (ValueError, TypeError):
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class Settings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    delivery_timeout_sec: float = DEFAULT_DELIVERY_TIMEOUT_SEC
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from env (defaults to os.environ after loading .env). Bad values fall back to defaults."""
        if env is None:
            load_dotenv()
            env = os.environ
        return cls(
            host=(env.get("PUBSUB_HOST") or "").strip() or DEFAULT_HOST,
            port=_int(env, "PUBSUB_PORT", DEFAULT_PORT),
            delivery_timeout_sec=_float(env, "DELIVERY_TIMEOUT_SEC", DEFAULT_DELIVERY_TIMEOUT_SEC),
            log_level=(env.get("LOG_LEVEL") or "").strip().upper() or DEFAULT_LOG_LEVEL,
        )

    @property
    def emulator_host(self) -> str:
        """Value exported as PUBSUB_EMULATOR_HOST for in-process clients."""
        return f"localhost:{self.port}"
