# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database seed package.

This package contains seed data for initializing the practice database:
- Achievement definitions
"""

from qla_practice.infrastructure.database.seeds.achievements import (
    DEFAULT_ACHIEVEMENTS,
    seed_achievement_definitions,
)

__all__ = ["DEFAULT_ACHIEVEMENTS", "seed_achievement_definitions"]
