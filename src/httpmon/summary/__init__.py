# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Per-endpoint aggregation of probe results."""

from .engine import summarize, summarize_group

__all__ = ["summarize", "summarize_group"]
