# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Delimited text records for pings: writing them out and reading them back."""

from __future__ import annotations

import csv
import logging
import threading
from collections.abc import Sequence
from typing import IO

from ..errors import RecordError
from ..models import Ping, PingStatus
from .formatter import (
    format_duration_ms,
    format_duration_s,
    format_time,
    parse_duration_ms,
    parse_duration_s,
    parse_int,
    parse_time,
)

logger = logging.getLogger(__name__)

DELIMITER = ";"
PING_HEADER = (
    "MONITOR",
    "URL",
    "STATUS",
    "TIMESTAMP",
    "CODE",
    "MESSAGE",
    "DNS",
    "CONNECTION",
    "TLS",
    "TTFB",
    "DOWNLOAD",
    "RESPONSE",
    "CERT VALIDITY",
)


def ping_to_record(ping: Ping) -> list[str]:
    return [
        ping.name,
        ping.url,
        ping.status.value,
        format_time(ping.timestamp),
        str(ping.status_code),
        ping.message,
        format_duration_ms(ping.dns_time),
        format_duration_ms(ping.connection_time),
        format_duration_ms(ping.tls_time),
        format_duration_ms(ping.ttfb),
        format_duration_ms(ping.download_time),
        format_duration_ms(ping.total_response_time),
        format_duration_s(ping.cert_remaining_validity),
    ]


def record_to_ping(record: Sequence[str]) -> Ping:
    if len(record) != len(PING_HEADER):
        raise RecordError(f"expected {len(PING_HEADER)} fields, got {len(record)}")
    try:
        return Ping(
            name=record[0],
            url=record[1],
            status=PingStatus(record[2]),
            timestamp=parse_time(record[3]),
            status_code=parse_int(record[4]),
            message=record[5],
            dns_time=parse_duration_ms(record[6]),
            connection_time=parse_duration_ms(record[7]),
            tls_time=parse_duration_ms(record[8]),
            ttfb=parse_duration_ms(record[9]),
            download_time=parse_duration_ms(record[10]),
            total_response_time=parse_duration_ms(record[11]),
            cert_remaining_validity=parse_duration_s(record[12]),
        )
    except ValueError as exc:
        raise RecordError(str(exc)) from exc


def _is_header(record: Sequence[str]) -> bool:
    return tuple(field.strip().upper() for field in record) == PING_HEADER


class CsvPingWriter:
    """Delimited record writer; `write_row` may be called from several threads."""

    def __init__(self, stream: IO[str], *, delimiter: str = DELIMITER):
        self._stream = stream
        self._writer = csv.writer(stream, delimiter=delimiter, lineterminator="\n")
        self._lock = threading.Lock()

    def write_row(self, row: Sequence[str]) -> None:
        with self._lock:
            self._writer.writerow(row)

    def write(self, ping: Ping) -> None:
        self.write_row(ping_to_record(ping))

    def flush(self) -> None:
        with self._lock:
            self._stream.flush()


def read_pings(stream: IO[str], *, ignore_invalid: bool = False, delimiter: str = DELIMITER) -> list[Ping]:
    """
    Parse delimited ping records.

    Blank lines and header rows are skipped. Any other malformed row raises RecordError
    carrying its line number, or is skipped when `ignore_invalid` is set.
    """
    reader = csv.reader(stream, delimiter=delimiter)
    pings: list[Ping] = []
    while True:
        try:
            record = next(reader)
        except StopIteration:
            break
        except csv.Error as exc:
            if ignore_invalid:
                logger.debug("Skipping unreadable record on line %d: %s", reader.line_num, exc)
                continue
            raise RecordError(str(exc), line=reader.line_num) from exc

        if not record or _is_header(record):
            continue
        try:
            pings.append(record_to_ping(record))
        except RecordError as exc:
            if ignore_invalid:
                logger.debug("Skipping invalid record on line %d: %s", reader.line_num, exc)
                continue
            raise RecordError(str(exc), line=reader.line_num) from exc
    return pings


__all__ = ["CsvPingWriter", "DELIMITER", "PING_HEADER", "ping_to_record", "read_pings", "record_to_ping"]
