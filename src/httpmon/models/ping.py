# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe result model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

ZERO = timedelta(0)


class PingStatus(str, Enum):
    SUCCESS = "Success"
    FAILED = "Failed"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Ping:
    """
    Result of one probe.

    Every timing is a non-negative duration and zero when the phase did not happen.
    A ping that never obtained a response carries status code 0 and zero timings.
    """

    name: str
    url: str
    status: PingStatus
    timestamp: datetime
    status_code: int = 0
    message: str = ""
    dns_time: timedelta = ZERO
    connection_time: timedelta = ZERO
    tls_time: timedelta = ZERO
    ttfb: timedelta = ZERO
    download_time: timedelta = ZERO
    total_response_time: timedelta = ZERO
    cert_remaining_validity: timedelta = ZERO

    @property
    def ok(self) -> bool:
        return self.status == PingStatus.SUCCESS

    @classmethod
    def failed(cls, name: str, url: str, message: str, *, timestamp: datetime | None = None) -> Ping:
        """A Failed ping for errors raised before any response was received."""
        return cls(
            name=name,
            url=url,
            status=PingStatus.FAILED,
            timestamp=timestamp or utcnow(),
            status_code=0,
            message=message,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "url": self.url,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "status_code": self.status_code,
            "message": self.message,
            "dns_ms": _millis(self.dns_time),
            "connection_ms": _millis(self.connection_time),
            "tls_ms": _millis(self.tls_time),
            "ttfb_ms": _millis(self.ttfb),
            "download_ms": _millis(self.download_time),
            "total_ms": _millis(self.total_response_time),
            "cert_remaining_validity_s": int(self.cert_remaining_validity.total_seconds()),
        }


def _millis(value: timedelta) -> int:
    return int(value / timedelta(milliseconds=1))
