# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Dataclass exports for httpmon."""

from .monitor import MonitorConfig
from .ping import Ping, PingStatus
from .summary import SummaryStats

__all__ = [
    "MonitorConfig",
    "Ping",
    "PingStatus",
    "SummaryStats",
]
