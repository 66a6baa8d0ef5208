# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Mastery curve and status thresholds.

Mastery is a 0-100 scalar per (user, skill). Each graded attempt moves it
a fraction of the way towards 100 (correct) or towards 0 (incorrect):

    weight   0.15 below 30, 0.10 below 70, 0.05 otherwise
    correct  m + (100 - m) * weight * (1 + 0.1 * min(streak, 5))
    wrong    m - m * weight * 0.5

Both steps stay inside [0, 100], a correct answer never lowers mastery
and a wrong one never raises it.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

MASTERY_MIN = 0.0
MASTERY_MAX = 100.0
STREAK_BOOST_CAP = 5

STATUS_NEW = "new"
STATUS_LEARNING = "learning"
STATUS_PRACTICED = "practiced"
STATUS_MASTERED = "mastered"


def learning_weight(mastery: float) -> float:
    """Step size for the current mastery level; smaller as mastery grows."""
    if mastery < 30:
        return 0.15
    if mastery < 70:
        return 0.10
    return 0.05


def next_mastery(mastery: float, is_correct: bool, streak_after: int) -> float:
    """Apply one graded attempt to a mastery level.

    Args:
        mastery: Current level (clamped into [0, 100] first).
        is_correct: Whether the attempt was correct.
        streak_after: Correct streak including this attempt.

    Returns:
        The new level, rounded to the stored precision.
    """
    m = min(MASTERY_MAX, max(MASTERY_MIN, float(mastery)))
    weight = learning_weight(m)
    if is_correct:
        boost = 1 + 0.1 * min(max(streak_after, 0), STREAK_BOOST_CAP)
        updated = min(MASTERY_MAX, m + (MASTERY_MAX - m) * weight * boost)
        # Rounding to two places must not undo the step
        return max(m, _round2(updated))
    updated = max(MASTERY_MIN, m - m * weight * 0.5)
    return min(m, _round2(updated))


def _round2(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def mastery_status(
    mastery: float,
    mastered_threshold: float = 85.0,
    learning_threshold: float = 70.0,
) -> str:
    """Status label for a recorded mastery level."""
    if mastery >= mastered_threshold:
        return STATUS_MASTERED
    if mastery >= learning_threshold:
        return STATUS_PRACTICED
    return STATUS_LEARNING


def ideal_tier(mastery: Optional[float]) -> int:
    """Difficulty tier matching a mastery level.

    Recorded levels map to floor(mastery / 20), so 0 for anything below 20
    and 5 only at 100. Unrecorded skills start at tier 1.
    """
    if mastery is None:
        return 1
    return min(5, max(0, int(float(mastery) // 20)))


@dataclass
class MasteryUpdate:
    """Result of applying one attempt to a mastery record."""

    mastery_before: float
    mastery_after: float
    questions_attempted: int
    questions_correct: int
    current_streak: int
    best_streak: int
    status: str
    newly_mastered: bool


def apply_attempt(
    *,
    mastery: float,
    questions_attempted: int,
    questions_correct: int,
    current_streak: int,
    best_streak: int,
    previous_status: str,
    is_correct: bool,
    mastered_threshold: float = 85.0,
    learning_threshold: float = 70.0,
) -> MasteryUpdate:
    """Compute every aggregate change caused by one graded attempt."""
    streak = current_streak + 1 if is_correct else 0
    after = next_mastery(mastery, is_correct, streak)
    status = mastery_status(after, mastered_threshold, learning_threshold)
    return MasteryUpdate(
        mastery_before=float(mastery),
        mastery_after=after,
        questions_attempted=questions_attempted + 1,
        questions_correct=questions_correct + (1 if is_correct else 0),
        current_streak=streak,
        best_streak=max(best_streak, streak),
        status=status,
        newly_mastered=status == STATUS_MASTERED and previous_status != STATUS_MASTERED,
    )


def stamp_mastery_achieved(
    achieved_at: Optional[datetime], update: MasteryUpdate, now: datetime
) -> Optional[datetime]:
    """Keep the first time a record reached mastered."""
    if achieved_at is None and update.status == STATUS_MASTERED:
        return now
    return achieved_at
