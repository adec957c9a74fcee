# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Progress store migrations.

Contains migrations for:
- learning_interactions: Append-only interaction log
- topic_mastery: Per-topic mastery counters
- student_progress: Per-student rollup
- usage_events: Operational usage log
"""
