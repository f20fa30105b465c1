# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe execution: single-target engine and the concurrent fan-out runner."""

from .engine import ProbeEngine, build_request, execute_ping, validate_request
from .runner import ProbeRunner

__all__ = ["ProbeEngine", "ProbeRunner", "build_request", "execute_ping", "validate_request"]
