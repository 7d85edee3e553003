from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

load_dotenv()

# ---------- Endpoints ----------
DEFAULT_BASE_URL = "https://ismp.crpt.ru/api/v3"
CREATE_DOCUMENT_PATH = "/lk/documents/create"
JSON_CONTENT_TYPE = "application/json"

# ---------- Defaults (overridable through env / .env) ----------
DEFAULT_CONNECT_TIMEOUT_MS = 5000
DEFAULT_READ_TIMEOUT_MS = 5000
DEFAULT_CONNECT_RETRIES = 3
DEFAULT_RATE_LIMIT_UNIT = "second"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# a rate-limit window is always exactly one of these units
_UNITS = {
    "millisecond": timedelta(milliseconds=1),
    "second": timedelta(seconds=1),
    "minute": timedelta(minutes=1),
    "hour": timedelta(hours=1),
    "day": timedelta(days=1),
}


@dataclass(frozen=True)
class RateLimit:
    """At most `max_calls` outbound calls per fixed `window`."""
    window: timedelta
    max_calls: int

    def __post_init__(self):
        if isinstance(self.max_calls, bool) or not isinstance(self.max_calls, int):
            raise ConfigurationError(f"Rate limit amount must be an integer, got {self.max_calls!r}")
        if self.max_calls <= 0:
            raise ConfigurationError(f"Rate limit amount must be positive, got {self.max_calls}")
        if self.window <= timedelta(0):
            raise ConfigurationError(f"Rate limit window must be positive, got {self.window}")

    @classmethod
    def per(cls, unit: str, amount: int) -> RateLimit:
        """RateLimit.per("second", 5) -> 5 calls per 1s window. Plural unit names are accepted."""
        key = unit.strip().lower()
        if key.endswith("s") and key[:-1] in _UNITS:
            key = key[:-1]
        if key not in _UNITS:
            raise ConfigurationError(f"Unknown rate limit unit {unit!r}; expected one of {sorted(_UNITS)}")
        return cls(window=_UNITS[key], max_calls=amount)

    @property
    def window_seconds(self) -> float:
        return self.window.total_seconds()


@dataclass(frozen=True)
class ClientConfig:
    base_url: str = DEFAULT_BASE_URL
    connect_timeout_ms: int = DEFAULT_CONNECT_TIMEOUT_MS
    read_timeout_ms: int = DEFAULT_READ_TIMEOUT_MS
    rate_limit: Optional[RateLimit] = None
    connect_retries: int = DEFAULT_CONNECT_RETRIES

    def __post_init__(self):
        if not self.base_url or not self.base_url.strip():
            raise ConfigurationError("base_url is required")
        if self.connect_timeout_ms <= 0 or self.read_timeout_ms <= 0:
            raise ConfigurationError(
                f"Timeouts must be positive (connect={self.connect_timeout_ms}, read={self.read_timeout_ms})"
            )
        if self.connect_retries < 1:
            raise ConfigurationError(f"connect_retries must be >= 1, got {self.connect_retries}")
        if self.rate_limit is not None and not isinstance(self.rate_limit, RateLimit):
            raise ConfigurationError(f"rate_limit must be a RateLimit, got {type(self.rate_limit).__name__}")

    @property
    def timeout(self) -> tuple[float, float]:
        """(connect, read) in seconds, the shape requests expects."""
        return self.connect_timeout_ms / 1000, self.read_timeout_ms / 1000


# ---------- Env loading ----------
def _env_int(env: Mapping[str, str], name: str, default: Optional[int]) -> Optional[int]:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def load_client_config(env: Optional[Mapping[str, str]] = None) -> ClientConfig:
    """
    Build a ClientConfig from CRPT_* environment variables (.env is loaded on import).
    Rate limiting is enabled only when CRPT_RATE_LIMIT_AMOUNT is set.
    """
    env = os.environ if env is None else env
    amount = _env_int(env, "CRPT_RATE_LIMIT_AMOUNT", None)
    rate_limit = None
    if amount is not None:
        rate_limit = RateLimit.per(env.get("CRPT_RATE_LIMIT_UNIT") or DEFAULT_RATE_LIMIT_UNIT, amount)
    return ClientConfig(
        base_url=(env.get("CRPT_BASE_URL") or DEFAULT_BASE_URL).strip(),
        connect_timeout_ms=_env_int(env, "CRPT_CONNECT_TIMEOUT_MS", DEFAULT_CONNECT_TIMEOUT_MS),
        read_timeout_ms=_env_int(env, "CRPT_READ_TIMEOUT_MS", DEFAULT_READ_TIMEOUT_MS),
        rate_limit=rate_limit,
        connect_retries=_env_int(env, "CRPT_CONNECT_RETRIES", DEFAULT_CONNECT_RETRIES),
    )


def configure_logging(level: Optional[str] = None) -> None:
    level = (level or os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
