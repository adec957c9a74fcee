"""Learning Progress & Mastery Analytics Engine.

Records learning interactions, maintains per-topic mastery and per-student
progress, and serves role-gated learning and usage analytics.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
