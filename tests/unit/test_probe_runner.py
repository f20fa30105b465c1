# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import threading
import time
from datetime import datetime, timezone

from httpmon.models import MonitorConfig, Ping, PingStatus
from httpmon.probe import ProbeRunner


class DelayEngine:
    def __init__(self, delays):
        self.delays = delays
        self.calls = []

    def execute(self, config):
        self.calls.append(config.url)
        time.sleep(self.delays.get(config.url, 0))
        return Ping(
            name=config.name,
            url=config.url,
            status=PingStatus.SUCCESS,
            timestamp=datetime.now(timezone.utc),
            status_code=200,
        )


class ExplodingEngine:
    def execute(self, config):
        raise RuntimeError(f"boom {config.url}")


def configs(*urls):
    return [MonitorConfig(name="agent", url=url) for url in urls]


def test_run_returns_one_ping_per_target_in_input_order():
    engine = DelayEngine({"http://a": 0.2, "http://b": 0.0, "http://c": 0.1})
    completed = []

    pings = ProbeRunner(engine).run(configs("http://a", "http://b", "http://c"), on_result=lambda p: completed.append(p.url))

    assert [p.url for p in pings] == ["http://a", "http://b", "http://c"]
    assert sorted(completed) == ["http://a", "http://b", "http://c"]
    assert completed[0] == "http://b"


def test_run_with_no_targets():
    assert ProbeRunner(DelayEngine({})).run([]) == []


def test_on_result_is_serialized():
    active = 0
    peak = 0
    guard = threading.Lock()
    seen = []

    def on_result(ping):
        nonlocal active, peak
        with guard:
            active += 1
            peak = max(peak, active)
        time.sleep(0.02)
        seen.append(ping.url)
        with guard:
            active -= 1

    urls = [f"http://host{i}" for i in range(8)]
    ProbeRunner(DelayEngine({})).run(configs(*urls), on_result=on_result)

    assert peak == 1
    assert sorted(seen) == sorted(urls)


def test_max_workers_caps_pool():
    engine = DelayEngine({})
    pings = ProbeRunner(engine, max_workers=1).run(configs("http://a", "http://b"))
    assert engine.calls == ["http://a", "http://b"]
    assert len(pings) == 2


def test_unexpected_engine_errors_become_failed_pings():
    pings = ProbeRunner(ExplodingEngine()).run(configs("http://a"))
    assert pings[0].status == PingStatus.FAILED
    assert pings[0].status_code == 0
    assert "boom http://a" in pings[0].message
