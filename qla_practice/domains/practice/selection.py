# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Question planning for practice sessions.

The selector loads candidate questions for a mode with one query (scope
filtering only). Everything else (eligibility, ordering, random
tie-breaks and truncation) happens here, on plain data, so the rules
can be exercised without a database.

Modes:
    targeted  one skill, ascending difficulty
    mixed     skills the user is learning or practicing, random order
    review    stale or weak skills, oldest-practiced first
    adaptive  difficulty within one tier of floor(mastery / 20); skills
              without a record start on tiers 1-2
"""

import random
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Sequence
from uuid import UUID

from qla_practice.domains.practice.mastery import (
    STATUS_LEARNING,
    STATUS_PRACTICED,
    ideal_tier,
)
from qla_practice.utils.datetime import is_older_than

MIN_TIER = 1
MAX_TIER = 5
ONBOARDING_TIERS = (1, 2)


class SessionType(str, Enum):
    """Practice session modes."""

    TARGETED = "targeted"
    MIXED = "mixed"
    REVIEW = "review"
    ADAPTIVE = "adaptive"


@dataclass(frozen=True)
class Candidate:
    """A question together with the caller's record on its skill.

    ``mastery`` and ``last_practiced`` are None when the user has no
    mastery record for the skill.
    """

    question_id: UUID
    skill_id: UUID
    difficulty: int
    mastery: Optional[float] = None
    status: Optional[str] = None
    last_practiced: Optional[datetime] = None


@dataclass(frozen=True)
class PlanRules:
    """Thresholds used by the review and adaptive modes."""

    review_stale_days: int = 7
    review_mastery_threshold: float = 70.0


def clamp_count(count: Optional[int], default: int, maximum: int) -> int:
    """Bound a requested session size to [1, maximum]."""
    if count is None:
        count = default
    return max(1, min(int(count), maximum))


def adaptive_band(mastery: Optional[float]) -> tuple[int, int]:
    """Inclusive difficulty range served for a mastery level."""
    if mastery is None:
        return ONBOARDING_TIERS
    tier = ideal_tier(mastery)
    return max(MIN_TIER, tier - 1), min(MAX_TIER, tier + 1)


def needs_review(candidate: Candidate, rules: PlanRules, now: datetime) -> bool:
    """Whether a recorded skill is stale or below the review threshold."""
    if candidate.mastery is None:
        return False
    if candidate.mastery < rules.review_mastery_threshold:
        return True
    return is_older_than(candidate.last_practiced, rules.review_stale_days, now=now)


def plan_session(
    mode: SessionType,
    candidates: Sequence[Candidate],
    count: int,
    now: datetime,
    rules: PlanRules = PlanRules(),
    rng: Optional[random.Random] = None,
) -> list[Candidate]:
    """Choose and order the questions for one session.

    Args:
        mode: Session mode.
        candidates: Questions in scope for the mode.
        count: Maximum number of questions (already clamped).
        now: Reference time for staleness.
        rules: Review thresholds.
        rng: Random source for tie-breaks.

    Returns:
        Up to ``count`` candidates in presentation order. Fewer (or none)
        when not enough questions qualify.
    """
    rng = rng or random.Random()

    if mode == SessionType.TARGETED:
        ordered = sorted(candidates, key=lambda c: (c.difficulty, rng.random()))

    elif mode == SessionType.MIXED:
        eligible = [
            c for c in candidates if c.status in (STATUS_LEARNING, STATUS_PRACTICED)
        ]
        ordered = sorted(eligible, key=lambda c: rng.random())

    elif mode == SessionType.REVIEW:
        eligible = [c for c in candidates if needs_review(c, rules, now)]
        ordered = sorted(
            eligible,
            key=lambda c: (
                c.last_practiced is not None,
                c.last_practiced or now,
                rng.random(),
            ),
        )

    elif mode == SessionType.ADAPTIVE:
        eligible = []
        for c in candidates:
            low, high = adaptive_band(c.mastery)
            if low <= c.difficulty <= high:
                eligible.append(c)
        ordered = sorted(
            eligible,
            key=lambda c: (abs(c.difficulty - ideal_tier(c.mastery)), rng.random()),
        )

    else:
        raise ValueError(f"Unknown session type: {mode}")

    return ordered[:count]
