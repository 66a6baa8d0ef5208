# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Achievement domain."""

from qla_practice.domains.achievements.service import (
    AchievementService,
    AttemptContext,
    EarnedAchievement,
)

__all__ = ["AchievementService", "AttemptContext", "EarnedAchievement"]
