# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Usage analytics domain.

Records billable/observable actions and serves admin-only usage
statistics and anomaly detection.
"""

from src.domains.usage.service import UsageService

__all__ = ["UsageService"]
