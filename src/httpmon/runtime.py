# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""High-level httpmon facade for probing and summarizing."""

from __future__ import annotations

import socket
from collections.abc import Iterable, Mapping, Sequence

from .config import ProbeSettings, load_probe_settings
from .models import MonitorConfig, Ping, SummaryStats
from .probe.engine import ProbeEngine
from .probe.runner import ProbeRunner, ResultCallback
from .summary.engine import summarize


def default_agent_name() -> str:
    """The local hostname, used as agent name when none is given."""
    return socket.gethostname()


class HttpMon:
    """Convenience wrapper that wires settings, the probe engine and the fan-out runner."""

    def __init__(
        self,
        name: str | None = None,
        *,
        settings: ProbeSettings | None = None,
        engine: ProbeEngine | None = None,
    ):
        self.settings = settings or load_probe_settings()
        self.name = name or default_agent_name()
        self.engine = engine or ProbeEngine()
        self.runner = ProbeRunner(self.engine, max_workers=self.settings.max_workers)

    def monitor_config(self, url: str, *, headers: Mapping[str, str] | None = None) -> MonitorConfig:
        return MonitorConfig.from_settings(self.name, url, self.settings, headers=headers)

    def probe(self, url: str, *, headers: Mapping[str, str] | None = None) -> Ping:
        return self.engine.execute(self.monitor_config(url, headers=headers))

    def probe_all(self, urls: Sequence[str], on_result: ResultCallback | None = None) -> list[Ping]:
        configs = [self.monitor_config(url) for url in urls]
        return self.runner.run(configs, on_result=on_result)

    def summarize(self, pings: Iterable[Ping], *, ignore_missing_certificates: bool = False) -> list[SummaryStats]:
        return summarize(pings, ignore_missing_certificates=ignore_missing_certificates)

