"""Configuration helpers and .env loading for minihttp."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Iterable

from dotenv import load_dotenv

from . import __version__
from .resolver import RESOLVER_KINDS

DEFAULT_ENV_FILES: tuple[Path, ...] = (
    Path(".env"),
    Path("config/.env"),
)

ENV_PREFIX = "MINIHTTP_"
DEFAULT_USER_AGENT = f"minihttp/{__version__}"
DEFAULT_MAX_COOKIE_LENGTH = 1024


@lru_cache(maxsize=1)
def load_environment(*, extra_files: tuple[Path, ...] | None = None) -> dict[str, str]:
    """Load environment variables from .env files once per process."""

    candidates = list(DEFAULT_ENV_FILES)
    if extra_files:
        candidates = [*candidates, *extra_files]

    for path in candidates:
        try:
            if path.exists():
                load_dotenv(path, override=False)
        except OSError:
            continue

    load_dotenv(override=False)
    return dict(os.environ)


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ClientConfig:
    """Settings a :class:`~minihttp.client.Client` is built with.

    ``log_context`` is merged into every log record the client emits, so
    callers can tag records (service name, request id...) without the client
    reading any ambient process state.
    """

    timeout: float = 30.0
    user_agent: str | None = DEFAULT_USER_AGENT
    max_cookie_length: int = DEFAULT_MAX_COOKIE_LENGTH
    resolver: str = "system"
    dns_lifetime: float = 3.0
    debug: bool = False
    log_context: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.max_cookie_length <= 0:
            raise ValueError("max_cookie_length must be positive")
        if self.resolver not in RESOLVER_KINDS:
            raise ValueError(f"resolver must be one of {sorted(RESOLVER_KINDS)}")
        if self.dns_lifetime <= 0:
            raise ValueError("dns_lifetime must be positive")

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        extra_files: Iterable[Path] | None = None,
    ) -> "ClientConfig":
        """Build a configuration from ``MINIHTTP_*`` variables."""

        if environ is None:
            environ = load_environment(extra_files=tuple(extra_files) if extra_files else None)

        def get(name: str) -> str | None:
            return environ.get(ENV_PREFIX + name)

        user_agent = get("USER_AGENT")
        return cls(
            timeout=float(get("TIMEOUT") or cls.timeout),
            user_agent=DEFAULT_USER_AGENT if user_agent is None else (user_agent or None),
            max_cookie_length=int(get("MAX_COOKIE_LENGTH") or cls.max_cookie_length),
            resolver=(get("RESOLVER") or cls.resolver).lower(),
            dns_lifetime=float(get("DNS_LIFETIME") or cls.dns_lifetime),
            debug=_env_bool(get("DEBUG"), cls.debug),
        )

    def as_dict(self) -> dict[str, object]:
        return {
            "timeout": self.timeout,
            "user_agent": self.user_agent,
            "max_cookie_length": self.max_cookie_length,
            "resolver": self.resolver,
            "dns_lifetime": self.dns_lifetime,
            "debug": self.debug,
            "log_context": dict(self.log_context),
        }


def require_setting(name: str) -> str:
    value = os.environ.get(name)
    if not value:
        raise RuntimeError(f"Required environment variable '{name}' is not set")
    return value


__all__ = [
    "ClientConfig",
    "DEFAULT_ENV_FILES",
    "load_environment",
    "require_setting",
]
