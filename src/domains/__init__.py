# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer.

This package contains domain services that encapsulate business logic.

Domains:
    auth: Identity, role gate and provider token verification.
    progress: Interaction recording, topic mastery and student progress.
    usage: Usage statistics and anomaly detection.
"""
