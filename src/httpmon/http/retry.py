# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Retry helper for probes."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from ..models import MonitorConfig, Ping

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Retry policy for a probe derived from its MonitorConfig."""

    max_attempts: int = 1
    backoff_factor: float = 2.0
    initial_delay: float = 10.0

    @classmethod
    def from_monitor(cls, config: MonitorConfig) -> RetryConfig:
        """`retries` counts extra attempts on top of the first one."""
        return cls(
            max_attempts=1 + max(0, config.retries),
            backoff_factor=config.backoff_factor,
            initial_delay=max(0.0, config.retry_interval),
        )


def probe_with_retries(
    probe_once: Callable[[], Ping],
    retry_config: RetryConfig | None = None,
    *,
    sleep: Callable[[float], None] | None = None,
) -> Ping:
    """Run a probe with basic retry/backoff semantics and return the last attempt."""
    cfg = retry_config or RetryConfig()
    sleep = sleep or time.sleep

    attempt = 0
    delay = cfg.initial_delay
    while True:
        ping = probe_once()
        attempt += 1

        # Only transport-level failures (no status code) are retried. A received response
        # is final even when its status code is not accepted.
        if ping.status_code != 0 or attempt >= cfg.max_attempts:
            return ping

        logger.info(
            "Probe of %s failed (%s); retrying in %.1fs (attempt %d of %d)",
            ping.url,
            ping.message,
            delay,
            attempt + 1,
            cfg.max_attempts,
        )
        sleep(delay)
        delay *= cfg.backoff_factor


__all__ = ["RetryConfig", "probe_with_retries"]
