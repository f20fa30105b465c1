# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Text formatting and parsing of record fields.

Durations are written as whole milliseconds (timings) or whole seconds (certificate
validity), truncated toward zero. Timestamps are RFC 3339 in UTC with second precision.
Parsing a formatted value gives back the truncated value exactly.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

_MICROS_PER_MS = 1_000
_MICROS_PER_S = 1_000_000


def _total_microseconds(value: timedelta) -> int:
    return (value.days * 86_400 + value.seconds) * _MICROS_PER_S + value.microseconds


def _truncate(value: timedelta, unit: int) -> int:
    micros = _total_microseconds(value)
    whole = abs(micros) // unit
    return whole if micros >= 0 else -whole


def format_int(value: int) -> str:
    return str(value)


def format_percentage(value: float) -> str:
    return f"{value:.2f}%"


def format_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def format_duration_ms(value: timedelta) -> str:
    return str(_truncate(value, _MICROS_PER_MS))


def format_duration_s(value: timedelta) -> str:
    return str(_truncate(value, _MICROS_PER_S))


def parse_int(text: str) -> int:
    return int(text.strip())


def parse_time(text: str) -> datetime:
    raw = text.strip()
    if raw[-1:] in {"Z", "z"}:
        raw = raw[:-1] + "+00:00"
    value = datetime.fromisoformat(raw)
    if value.tzinfo is None:
        raise ValueError(f"timestamp {text!r} has no UTC offset")
    return value.astimezone(timezone.utc)


def parse_duration_ms(text: str) -> timedelta:
    return timedelta(milliseconds=parse_int(text))


def parse_duration_s(text: str) -> timedelta:
    return timedelta(seconds=parse_int(text))


__all__ = [
    "format_duration_ms",
    "format_duration_s",
    "format_int",
    "format_percentage",
    "format_time",
    "parse_duration_ms",
    "parse_duration_s",
    "parse_int",
    "parse_time",
]
