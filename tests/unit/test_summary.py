# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

from datetime import datetime, timedelta, timezone

import pytest

from httpmon.models import Ping, PingStatus
from httpmon.summary import summarize, summarize_group
from httpmon.summary.engine import group_by_url, median_index, p99_index, shortest_cert_validity, worst_performer

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def ping(url="http://a", total_ms=10, *, name="agent", ok=True, cert_s=0, offset_s=0):
    return Ping(
        name=name,
        url=url,
        status=PingStatus.SUCCESS if ok else PingStatus.FAILED,
        timestamp=BASE + timedelta(seconds=offset_s),
        status_code=200 if ok else 0,
        total_response_time=timedelta(milliseconds=total_ms),
        cert_remaining_validity=timedelta(seconds=cert_s),
    )


def test_groups_are_sorted_by_url():
    stats = summarize([ping("http://b"), ping("http://a"), ping("http://b")])
    assert [item.endpoint for item in stats] == ["http://a", "http://b"]
    assert [item.measurements for item in stats] == [1, 2]


def test_group_by_url_keeps_first_seen_order():
    groups = group_by_url([ping("http://b"), ping("http://a")])
    assert list(groups) == ["http://b", "http://a"]


def test_availability_and_counts():
    group = [ping(total_ms=10), ping(total_ms=20), ping(total_ms=30), ping(total_ms=40, ok=False)]
    stats = summarize_group("http://a", group)
    assert stats.availability == 75.0
    assert stats.measurements == 4
    assert stats.failed_measurements == 1


def test_latency_statistics():
    group = [ping(total_ms=40), ping(total_ms=10), ping(total_ms=30), ping(total_ms=20)]
    stats = summarize_group("http://a", group)
    assert stats.avg_response_time == timedelta(milliseconds=25)
    assert stats.median_response_time == timedelta(milliseconds=30)
    assert stats.p99_response_time == timedelta(milliseconds=40)
    assert stats.longest_response_time == timedelta(milliseconds=40)


def test_failed_pings_count_toward_latency():
    stats = summarize_group("http://a", [ping(total_ms=0, ok=False), ping(total_ms=100)])
    assert stats.avg_response_time == timedelta(milliseconds=50)
    assert stats.median_response_time == timedelta(milliseconds=100)


@pytest.mark.parametrize(
    ("count", "median", "p99"),
    [(1, 0, 0), (2, 1, 1), (4, 2, 3), (100, 50, 98), (101, 50, 99), (200, 100, 197)],
)
def test_percentile_indices(count, median, p99):
    assert median_index(count) == median
    assert p99_index(count) == p99


def test_worst_monitor_ties_pick_first():
    group = [ping(name="alpha", total_ms=50), ping(name="beta", total_ms=50), ping(name="gamma", total_ms=10)]
    assert worst_performer(group).name == "alpha"
    assert summarize_group("http://a", group).worst_monitor == "alpha"


def test_shortest_cert_validity_includes_zero_unless_ignored():
    group = [ping(cert_s=0), ping(cert_s=100), ping(cert_s=50)]
    assert shortest_cert_validity(group) == timedelta(0)
    assert shortest_cert_validity(group, ignore_missing=True) == timedelta(seconds=50)
    assert shortest_cert_validity([ping(cert_s=0)], ignore_missing=True) == timedelta(0)

    stats = summarize([ping(cert_s=0), ping(cert_s=100)], ignore_missing_certificates=True)
    assert stats[0].shortest_cert_validity == timedelta(seconds=100)


def test_expired_certificate_is_the_minimum():
    group = [ping(cert_s=-30), ping(cert_s=100)]
    assert summarize_group("http://a", group).shortest_cert_validity == timedelta(seconds=-30)


def test_monitoring_duration_spans_timestamps():
    group = [ping(offset_s=0), ping(offset_s=30), ping(offset_s=10)]
    assert summarize_group("http://a", group).monitoring_duration == timedelta(seconds=30)
    assert summarize_group("http://a", group[:1]).monitoring_duration == timedelta(0)


def test_empty_inputs():
    assert summarize([]) == []
    with pytest.raises(ValueError):
        summarize_group("http://a", [])
