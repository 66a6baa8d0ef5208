# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the mastery curve."""

from datetime import datetime, timezone

import pytest

from qla_practice.domains.practice.mastery import (
    STATUS_LEARNING,
    STATUS_MASTERED,
    STATUS_PRACTICED,
    apply_attempt,
    ideal_tier,
    learning_weight,
    mastery_status,
    next_mastery,
    stamp_mastery_achieved,
)

LEVELS = [0, 0.01, 5, 29.99, 30, 50, 69.99, 70, 84.99, 85, 99.9, 99.99, 100]


class TestLearningWeight:
    """Tests for the step size."""

    @pytest.mark.parametrize(
        "mastery,expected",
        [(0, 0.15), (29.99, 0.15), (30, 0.10), (69.99, 0.10), (70, 0.05), (100, 0.05)],
    )
    def test_bands(self, mastery, expected) -> None:
        """Test weight for each mastery band."""
        assert learning_weight(mastery) == expected


class TestNextMastery:
    """Tests for a single mastery step."""

    def test_first_correct_from_zero(self) -> None:
        """Test 0 -> 16.5 with streak 1 (0.15 * 1.1 * 100)."""
        assert next_mastery(0, True, 1) == 16.5

    def test_incorrect_from_fifty(self) -> None:
        """Test 50 -> 47.5 on a wrong answer (50 - 50 * 0.1 * 0.5)."""
        assert next_mastery(50, False, 0) == 47.5

    def test_streak_boost_capped(self) -> None:
        """Test the streak boost stops growing after five."""
        assert next_mastery(40, True, 5) == next_mastery(40, True, 12)
        assert next_mastery(40, True, 5) > next_mastery(40, True, 4)

    @pytest.mark.parametrize("mastery", LEVELS)
    @pytest.mark.parametrize("streak", [0, 1, 3, 5, 20])
    def test_correct_bounded_and_non_decreasing(self, mastery, streak) -> None:
        """Test a correct answer never lowers mastery or exceeds 100."""
        after = next_mastery(mastery, True, streak)

        assert mastery <= after <= 100

    @pytest.mark.parametrize("mastery", LEVELS)
    def test_incorrect_bounded_and_non_increasing(self, mastery) -> None:
        """Test a wrong answer never raises mastery or drops below 0."""
        after = next_mastery(mastery, False, 0)

        assert 0 <= after <= mastery

    def test_out_of_range_input_clamped(self) -> None:
        """Test stored values outside [0, 100] are clamped first."""
        assert next_mastery(120, True, 1) == 100
        assert next_mastery(-5, False, 0) == 0

    def test_long_correct_run_approaches_mastered(self) -> None:
        """Test repeated correct answers reach the mastered band."""
        mastery = 0.0
        for streak in range(1, 40):
            mastery = next_mastery(mastery, True, streak)

        assert mastery_status(mastery) == STATUS_MASTERED
        assert mastery <= 100


class TestStatus:
    """Tests for status thresholds."""

    @pytest.mark.parametrize(
        "mastery,expected",
        [
            (0, STATUS_LEARNING),
            (69.99, STATUS_LEARNING),
            (70, STATUS_PRACTICED),
            (84.99, STATUS_PRACTICED),
            (85, STATUS_MASTERED),
            (100, STATUS_MASTERED),
        ],
    )
    def test_default_thresholds(self, mastery, expected) -> None:
        """Test default mastered/practiced thresholds."""
        assert mastery_status(mastery) == expected

    def test_custom_thresholds(self) -> None:
        """Test thresholds come from configuration."""
        assert mastery_status(80, mastered_threshold=80, learning_threshold=60) == STATUS_MASTERED
        assert mastery_status(65, mastered_threshold=80, learning_threshold=60) == STATUS_PRACTICED

    @pytest.mark.parametrize(
        "mastery,tier",
        [
            (None, 1),
            (0, 0),
            (10, 0),
            (19.99, 0),
            (20, 1),
            (40, 2),
            (60, 3),
            (80, 4),
            (99, 4),
            (100, 5),
        ],
    )
    def test_ideal_tier(self, mastery, tier) -> None:
        """Test ideal tier is floor(mastery / 20), tier 1 when unrecorded."""
        assert ideal_tier(mastery) == tier


class TestApplyAttempt:
    """Tests for the aggregate record update."""

    def test_correct_updates_counters_and_streak(self) -> None:
        """Test counters, streak and best streak after a correct answer."""
        update = apply_attempt(
            mastery=50,
            questions_attempted=4,
            questions_correct=2,
            current_streak=2,
            best_streak=2,
            previous_status=STATUS_LEARNING,
            is_correct=True,
        )

        assert update.mastery_before == 50
        assert update.mastery_after > 50
        assert update.questions_attempted == 5
        assert update.questions_correct == 3
        assert update.current_streak == 3
        assert update.best_streak == 3
        assert update.newly_mastered is False

    def test_incorrect_resets_streak_keeps_best(self) -> None:
        """Test a wrong answer resets the streak but not the best streak."""
        update = apply_attempt(
            mastery=50,
            questions_attempted=4,
            questions_correct=4,
            current_streak=4,
            best_streak=4,
            previous_status=STATUS_LEARNING,
            is_correct=False,
        )

        assert update.current_streak == 0
        assert update.best_streak == 4
        assert update.questions_correct == 4

    def test_crossing_into_mastered(self) -> None:
        """Test newly_mastered is set only on the crossing attempt."""
        crossing = apply_attempt(
            mastery=84.9,
            questions_attempted=30,
            questions_correct=28,
            current_streak=5,
            best_streak=5,
            previous_status=STATUS_PRACTICED,
            is_correct=True,
        )
        again = apply_attempt(
            mastery=crossing.mastery_after,
            questions_attempted=31,
            questions_correct=29,
            current_streak=6,
            best_streak=6,
            previous_status=crossing.status,
            is_correct=True,
        )

        assert crossing.status == STATUS_MASTERED
        assert crossing.newly_mastered is True
        assert again.newly_mastered is False


class TestStampMasteryAchieved:
    """Tests for the first-mastered timestamp."""

    def test_stamped_once(self) -> None:
        """Test the timestamp is set on first mastery and kept afterwards."""
        first = datetime(2025, 3, 1, tzinfo=timezone.utc)
        later = datetime(2025, 4, 1, tzinfo=timezone.utc)
        update = apply_attempt(
            mastery=90,
            questions_attempted=1,
            questions_correct=1,
            current_streak=1,
            best_streak=1,
            previous_status=STATUS_MASTERED,
            is_correct=True,
        )

        assert stamp_mastery_achieved(None, update, first) == first
        assert stamp_mastery_achieved(first, update, later) == first

    def test_not_stamped_below_mastered(self) -> None:
        """Test no timestamp while the skill is not mastered."""
        update = apply_attempt(
            mastery=10,
            questions_attempted=0,
            questions_correct=0,
            current_streak=0,
            best_streak=0,
            previous_status="new",
            is_correct=True,
        )

        assert stamp_mastery_achieved(None, update, datetime.now(timezone.utc)) is None
