# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Fan-out driver: probe every target concurrently and join before returning."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor

from ..models import MonitorConfig, Ping
from .engine import ProbeEngine

logger = logging.getLogger(__name__)

ResultCallback = Callable[[Ping], None]


class ProbeRunner:
    """
    Launches one task per target and gathers one Ping per target.

    Results come back in input order. `on_result` sees each ping as soon as its probe
    completes (completion order) and is never entered by two threads at once.
    """

    def __init__(self, engine: ProbeEngine | None = None, *, max_workers: int | None = None):
        self.engine = engine or ProbeEngine()
        self.max_workers = max_workers

    def run(self, configs: Sequence[MonitorConfig], on_result: ResultCallback | None = None) -> list[Ping]:
        if not configs:
            return []

        workers = len(configs)
        if self.max_workers and self.max_workers > 0:
            workers = min(workers, self.max_workers)

        lock = threading.Lock()

        def _probe(config: MonitorConfig) -> Ping:
            try:
                ping = self.engine.execute(config)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Probe of %s raised unexpectedly", config.url)
                ping = Ping.failed(config.name, config.url, f"Error executing request: {exc}")
            if on_result is not None:
                with lock:
                    on_result(ping)
            return ping

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="httpmon-probe") as executor:
            futures: list[Future[Ping]] = [executor.submit(_probe, config) for config in configs]
            return [future.result() for future in futures]


__all__ = ["ProbeRunner", "ResultCallback"]
