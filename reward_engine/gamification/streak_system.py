"""
Daily Streak Tracking System

Counts consecutive local calendar days with at least one streak-affecting
action (journal entries, story chapters, body scans).

Logic:
- First ever activity: streak starts at 1
- Activity on the same day: no change (the day is already counted)
- Activity on the next day: streak continues (+1)
- Gap of 2+ days: streak resets to 1

Milestones (3, 7, 14, 30, 60, 90, 180, 365 days) award a non-expiring
milestone reward worth streak_days * 10 points. Reaching a milestone again
after a reset awards it again.
"""

from typing import Optional, Tuple
from datetime import datetime
from uuid import uuid4
import logging

from reward_engine.models.reward import Reward, RewardType, UserAction
from reward_engine.utils.datetime_helpers import days_between

logger = logging.getLogger(__name__)

STREAK_MILESTONES = (3, 7, 14, 30, 60, 90, 180, 365)
STREAK_MILESTONE_POINTS_PER_DAY = 10


def build_streak_reward(streak_days: int, now: datetime) -> Reward:
    return Reward(
        id=str(uuid4()),
        type=RewardType.MILESTONE,
        value=streak_days * STREAK_MILESTONE_POINTS_PER_DAY,
        name=f"{streak_days}-Day Streak Achievement",
        description=(
            f"You've maintained your practice for {streak_days} consecutive days! "
            "Your consistency is building powerful habits."
        ),
        date_earned=now,
        expiry_date=None,
        associated_action=UserAction.STREAK,
    )


def update_streak(
    now: datetime,
    last_streak_date: Optional[datetime],
    streak_days: int
) -> Tuple[int, datetime, Optional[Reward]]:
    """
    Update the streak for a streak-affecting action

    Days are compared in the timezone of now.

    Args:
        now: Current time from the engine's clock
        last_streak_date: Time of the previous streak-affecting action, if any
        streak_days: Streak length before this action

    Returns:
        (new_streak_days, new_last_streak_date, milestone_reward or None)
    """
    old_streak = streak_days

    if last_streak_date is None:
        streak_days = 1
        logger.info("Streak started! Day 1")

    else:
        gap_days = days_between(last_streak_date, now)

        if gap_days <= 0:
            # Already counted for today; a clock that moved backwards
            # is treated the same way
            pass

        elif gap_days == 1:
            streak_days += 1
            logger.info(f"Streak continues! Day {streak_days}")

        else:
            streak_days = 1
            logger.info(f"Streak reset. Was {old_streak} days, gap was {gap_days} days")

    reward = None
    if streak_days != old_streak and streak_days in STREAK_MILESTONES:
        reward = build_streak_reward(streak_days, now)
        logger.info(f"{streak_days}-day streak milestone reached! +{reward.value} points")

    return streak_days, now, reward
