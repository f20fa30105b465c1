# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Aggregation of probe results into per-endpoint statistics.

Pings are grouped by URL in first-seen order and the output is sorted by URL, so the
result never depends on dictionary iteration order. Percentile picks are index based on
the ascending list of total response times:

- median: element ``n // 2`` (the upper middle element for an even count)
- p99: element ``max(0, ceil(n * 0.99) - 1)``
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import timedelta

from ..models import Ping, PingStatus, SummaryStats

ZERO = timedelta(0)


def group_by_url(pings: Iterable[Ping]) -> dict[str, list[Ping]]:
    groups: dict[str, list[Ping]] = {}
    for ping in pings:
        groups.setdefault(ping.url, []).append(ping)
    return groups


def median_index(count: int) -> int:
    return count // 2


def p99_index(count: int) -> int:
    # ceil(count * 0.99) in integer arithmetic.
    return max(0, (count * 99 + 99) // 100 - 1)


def worst_performer(group: Sequence[Ping]) -> Ping:
    """First ping holding the maximum total response time."""
    worst = group[0]
    for ping in group[1:]:
        if ping.total_response_time > worst.total_response_time:
            worst = ping
    return worst


def shortest_cert_validity(group: Sequence[Ping], *, ignore_missing: bool = False) -> timedelta:
    validities = [ping.cert_remaining_validity for ping in group]
    if ignore_missing:
        validities = [value for value in validities if value != ZERO]
    return min(validities, default=ZERO)


def summarize_group(
    endpoint: str,
    group: Sequence[Ping],
    *,
    ignore_missing_certificates: bool = False,
) -> SummaryStats:
    if not group:
        raise ValueError(f"cannot summarize an empty group for {endpoint}")

    count = len(group)
    failed = sum(1 for ping in group if ping.status == PingStatus.FAILED)
    totals = sorted(ping.total_response_time for ping in group)
    timestamps = [ping.timestamp for ping in group]

    return SummaryStats(
        endpoint=endpoint,
        availability=100.0 * (count - failed) / count,
        avg_response_time=sum(totals, ZERO) / count,
        median_response_time=totals[median_index(count)],
        p99_response_time=totals[p99_index(count)],
        longest_response_time=totals[-1],
        shortest_cert_validity=shortest_cert_validity(group, ignore_missing=ignore_missing_certificates),
        worst_monitor=worst_performer(group).name,
        measurements=count,
        failed_measurements=failed,
        monitoring_duration=max(timestamps) - min(timestamps),
    )


def summarize(pings: Iterable[Ping], *, ignore_missing_certificates: bool = False) -> list[SummaryStats]:
    """Reduce a batch of pings to one SummaryStats per URL, sorted by URL."""
    groups = group_by_url(pings)
    stats = [
        summarize_group(endpoint, group, ignore_missing_certificates=ignore_missing_certificates)
        for endpoint, group in groups.items()
    ]
    stats.sort(key=lambda item: item.endpoint)
    return stats


__all__ = [
    "group_by_url",
    "median_index",
    "p99_index",
    "shortest_cert_validity",
    "summarize",
    "summarize_group",
    "worst_performer",
]
