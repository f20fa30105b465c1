# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for httpmon."""

import os
from dataclasses import dataclass, field

DEFAULT_USER_AGENT = "HTTP-Monitor-Agent"
DEFAULT_ACCEPTED_STATUS_CODES = frozenset({200, 201, 202, 204})
DEFAULT_MAX_BODY_BYTES = 10 * 1024 * 1024


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _optional_int_env(name: str, default: int | None) -> int | None:
    try:
        value = os.getenv(name)
        if value is None:
            return default
        parsed = int(value)
        return parsed if parsed > 0 else None
    except ValueError:
        return default


def _status_codes_env(name: str, default: frozenset[int]) -> frozenset[int]:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return frozenset(int(part) for part in value.split(",") if part.strip())
    except ValueError:
        return default


@dataclass
class ProbeSettings:
    """Probe defaults shared by every target of a run."""

    connect_timeout: float = 5.0
    response_timeout: float = 5.0
    retries: int = 0
    retry_interval: float = 10.0
    backoff_factor: float = 2.0
    max_redirects: int = 3
    user_agent: str = DEFAULT_USER_AGENT
    verify_ssl: bool = True
    http2: bool = False
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    method: str = "GET"
    accepted_status_codes: frozenset[int] = field(default_factory=lambda: DEFAULT_ACCEPTED_STATUS_CODES)
    max_workers: int | None = None

    @classmethod
    def from_env(cls) -> "ProbeSettings":
        """Create settings from environment variables (evaluated at call time)."""
        defaults = cls()
        max_body_bytes = _int_env("HTTPMON_MAX_BODY_BYTES", defaults.max_body_bytes)
        if max_body_bytes <= 0:
            max_body_bytes = defaults.max_body_bytes
        return cls(
            connect_timeout=_float_env("HTTPMON_CONNECT_TIMEOUT", defaults.connect_timeout),
            response_timeout=_float_env("HTTPMON_RESPONSE_TIMEOUT", defaults.response_timeout),
            retries=max(0, _int_env("HTTPMON_RETRIES", defaults.retries)),
            retry_interval=_float_env("HTTPMON_RETRY_INTERVAL", defaults.retry_interval),
            backoff_factor=_float_env("HTTPMON_RETRY_BACKOFF", defaults.backoff_factor),
            max_redirects=max(0, _int_env("HTTPMON_MAX_REDIRECTS", defaults.max_redirects)),
            user_agent=os.getenv("HTTPMON_USER_AGENT", defaults.user_agent),
            verify_ssl=_bool_env("HTTPMON_VERIFY_SSL", defaults.verify_ssl),
            http2=_bool_env("HTTPMON_HTTP2", defaults.http2),
            max_body_bytes=max_body_bytes,
            method=os.getenv("HTTPMON_METHOD", defaults.method),
            accepted_status_codes=_status_codes_env("HTTPMON_ACCEPTED_STATUS_CODES", defaults.accepted_status_codes),
            max_workers=_optional_int_env("HTTPMON_MAX_WORKERS", defaults.max_workers),
        )


def load_probe_settings() -> ProbeSettings:
    """Load probe settings from environment with sensible defaults."""
    return ProbeSettings.from_env()
