# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for achievement definition seeding."""

import pytest

from qla_practice.infrastructure.database.models import AchievementDefinition
from qla_practice.infrastructure.database.seeds import (
    DEFAULT_ACHIEVEMENTS,
    seed_achievement_definitions,
)


class TestSeedAchievementDefinitions:
    """Tests for seed_achievement_definitions."""

    def test_default_names_are_unique(self):
        names = [data["name"] for data in DEFAULT_ACHIEVEMENTS]
        assert len(names) == len(set(names))
        assert {
            "first_practice",
            "accuracy_ace",
            "speed_demon",
            "hint_free",
            "skill_master",
            "perfect_session",
        } <= set(names)

    @pytest.mark.asyncio
    async def test_seeds_all_on_empty_table(self, mock_db, results):
        mock_db.execute.return_value = results.scalars([])

        created = await seed_achievement_definitions(mock_db)

        assert len(created) == len(DEFAULT_ACHIEVEMENTS)
        assert all(isinstance(d, AchievementDefinition) for d in created)
        assert mock_db.add.call_count == len(DEFAULT_ACHIEVEMENTS)
        mock_db.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_skips_existing_definitions(self, mock_db, results):
        existing = [data["name"] for data in DEFAULT_ACHIEVEMENTS[:-1]]
        mock_db.execute.return_value = results.scalars(existing)

        created = await seed_achievement_definitions(mock_db)

        assert [d.name for d in created] == [DEFAULT_ACHIEVEMENTS[-1]["name"]]

    @pytest.mark.asyncio
    async def test_nothing_to_do_skips_flush(self, mock_db, results):
        mock_db.execute.return_value = results.scalars(
            [data["name"] for data in DEFAULT_ACHIEVEMENTS]
        )

        created = await seed_achievement_definitions(mock_db)

        assert created == []
        mock_db.add.assert_not_called()
        mock_db.flush.assert_not_called()
