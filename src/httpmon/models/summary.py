# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Per-endpoint summary statistics."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import timedelta
from typing import Any


@dataclass(frozen=True)
class SummaryStats:
    endpoint: str
    availability: float
    avg_response_time: timedelta
    median_response_time: timedelta
    p99_response_time: timedelta
    longest_response_time: timedelta
    shortest_cert_validity: timedelta
    worst_monitor: str
    measurements: int
    failed_measurements: int
    monitoring_duration: timedelta = timedelta(0)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, timedelta):
                data[key] = value.total_seconds()
        return data
