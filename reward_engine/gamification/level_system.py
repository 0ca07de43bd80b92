"""
Leveling System

Derives the level from cumulative points and emits the level-up milestone.

Leveling Curve:
- Level 1 starts at 0 points
- Going from level n to n+1 costs 100 * 1.2^(n-1) points
- Cumulative thresholds: 100, 220, 364, 536.8, 744.16, ...

Level-up reward:
- One milestone per call that raises the level, worth new_level * 100 points, no expiry
- A jump across several levels in one action still yields a single reward
"""

from typing import Any, Dict, Optional, Tuple
from datetime import datetime
from uuid import uuid4
import logging
import math

from reward_engine.models.reward import Reward, RewardType, UserAction

logger = logging.getLogger(__name__)

BASE_LEVEL_POINTS = 100.0
LEVEL_GROWTH = 1.2


def points_required_for_level(level: int) -> float:
    """Points needed to advance from level to level + 1"""
    return BASE_LEVEL_POINTS * LEVEL_GROWTH ** (max(level, 1) - 1)


def calculate_level_from_points(total_points: int) -> Dict[str, Any]:
    """
    Calculate level and progress from total points

    Returns:
        {
            'current_level': int,
            'points_in_current_level': int,
            'points_to_next_level': int,
            'total_points_for_next_level': int
        }
    """
    level = 1
    points_required = BASE_LEVEL_POINTS
    points_accumulated = 0.0

    while points_accumulated + points_required <= total_points:
        points_accumulated += points_required
        level += 1
        points_required *= LEVEL_GROWTH

    points = max(total_points, 0)
    # Thresholds are floats; round before flooring so 219.99999 counts as 220
    next_threshold = round(points_accumulated + points_required, 6)

    return {
        "current_level": level,
        "points_in_current_level": math.floor(round(points - points_accumulated, 6)),
        "points_to_next_level": math.ceil(next_threshold - points),
        "total_points_for_next_level": math.ceil(next_threshold),
    }


def build_level_up_reward(new_level: int, now: datetime) -> Reward:
    return Reward(
        id=str(uuid4()),
        type=RewardType.MILESTONE,
        value=new_level * 100,
        name=f"Level {new_level} Achievement",
        description=f"You've reached level {new_level}! Your dedication to personal growth is impressive.",
        date_earned=now,
        expiry_date=None,
        associated_action=UserAction.LEVEL_UP,
    )


def update_level(
    total_points: int,
    current_level: int,
    now: datetime
) -> Tuple[int, Optional[Reward]]:
    """
    Recompute the level and emit a level-up milestone if it went up

    Never lowers the level. Calling again with unchanged points returns the
    same level and no reward.

    Args:
        total_points: Cumulative points after the ledger update
        current_level: Level stored before this call
        now: Timestamp for the milestone reward

    Returns:
        (new_level, level_up_reward or None)
    """
    calculated_level = calculate_level_from_points(total_points)["current_level"]

    if calculated_level <= current_level:
        return current_level, None

    logger.info(f"Level up: {current_level} -> {calculated_level} at {total_points} points")

    return calculated_level, build_level_up_reward(calculated_level, now)
