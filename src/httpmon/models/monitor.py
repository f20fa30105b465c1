# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Target configuration for a single probe."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from ..config import (
    DEFAULT_ACCEPTED_STATUS_CODES,
    DEFAULT_MAX_BODY_BYTES,
    DEFAULT_USER_AGENT,
    ProbeSettings,
    load_probe_settings,
)


@dataclass(frozen=True)
class MonitorConfig:
    """
    Defines what to probe and how.

    `name` identifies the probing agent, not the destination. Timeouts are in seconds:
    `connect_timeout` bounds DNS, TCP connect and TLS handshake together while
    `response_timeout` bounds the whole exchange including the body.
    """

    name: str
    url: str
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=lambda: {"User-Agent": DEFAULT_USER_AGENT})
    connect_timeout: float = 5.0
    response_timeout: float = 5.0
    accepted_status_codes: frozenset[int] = DEFAULT_ACCEPTED_STATUS_CODES
    retries: int = 0
    retry_interval: float = 10.0
    backoff_factor: float = 2.0
    max_redirects: int = 3
    verify_ssl: bool = True
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    http2: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.accepted_status_codes, frozenset):
            object.__setattr__(self, "accepted_status_codes", frozenset(self.accepted_status_codes))
        object.__setattr__(self, "headers", dict(self.headers or {}))

    def accepts(self, status_code: int) -> bool:
        return status_code in self.accepted_status_codes

    @classmethod
    def from_settings(
        cls,
        name: str,
        url: str,
        settings: ProbeSettings | None = None,
        *,
        headers: Mapping[str, str] | None = None,
        accepted_status_codes: Iterable[int] | None = None,
    ) -> MonitorConfig:
        """Build a target configuration using the shared ProbeSettings as defaults."""
        settings = settings or load_probe_settings()
        merged_headers = {"User-Agent": settings.user_agent}
        merged_headers.update(headers or {})
        codes = settings.accepted_status_codes if accepted_status_codes is None else accepted_status_codes
        return cls(
            name=name,
            url=url,
            method=settings.method,
            headers=merged_headers,
            connect_timeout=settings.connect_timeout,
            response_timeout=settings.response_timeout,
            accepted_status_codes=frozenset(codes),
            retries=settings.retries,
            retry_interval=settings.retry_interval,
            backoff_factor=settings.backoff_factor,
            max_redirects=settings.max_redirects,
            verify_ssl=settings.verify_ssl,
            max_body_bytes=settings.max_body_bytes,
            http2=settings.http2,
        )
