# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Aligned plain-text table output."""

from __future__ import annotations

import threading
from collections.abc import Sequence
from typing import IO


class TableWriter:
    """Buffers rows and prints them as left-aligned, space-padded columns on flush."""

    def __init__(self, stream: IO[str], *, padding: int = 3):
        self._stream = stream
        self._padding = padding
        self._rows: list[list[str]] = []
        self._lock = threading.Lock()

    def write_row(self, row: Sequence[str]) -> None:
        with self._lock:
            self._rows.append([str(cell) for cell in row])

    def flush(self) -> None:
        with self._lock:
            rows, self._rows = self._rows, []
        if not rows:
            return
        columns = max(len(row) for row in rows)
        widths = [0] * columns
        for row in rows:
            for index, cell in enumerate(row):
                widths[index] = max(widths[index], len(cell))
        gap = " " * self._padding
        for row in rows:
            line = gap.join(cell.ljust(widths[index]) for index, cell in enumerate(row))
            self._stream.write(line.rstrip() + "\n")
        self._stream.flush()


__all__ = ["TableWriter"]
