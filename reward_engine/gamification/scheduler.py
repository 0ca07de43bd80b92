"""
Reward Scheduler

Decides whether an action earns a reward.

Schedules:
- Fixed ratio: every Nth completion of an action is rewarded
- Variable ratio: each completion is rewarded with a probability of
  base chance + 1% per streak day (bonus capped at 10 days), capped at 95%
"""

import logging

from reward_engine.models.progression import ProgressionState
from reward_engine.models.reward import RewardSchedule, UserAction
from reward_engine.gamification.ledger import get_completion_count
from reward_engine.utils.random_source import RandomSource

logger = logging.getLogger(__name__)

STREAK_BONUS_PER_DAY = 0.01
MAX_STREAK_BONUS_DAYS = 10
MAX_REWARD_CHANCE = 0.95


def calculate_reward_chance(action: UserAction, streak_days: int) -> float:
    """
    Probability that a variable-schedule action is rewarded

    Returns:
        A value in [action.variable_reward_chance, 0.95], non-decreasing in
        streak_days and flat beyond 10 days
    """
    streak_bonus = min(max(streak_days, 0), MAX_STREAK_BONUS_DAYS) * STREAK_BONUS_PER_DAY
    return min(action.variable_reward_chance + streak_bonus, MAX_REWARD_CHANCE)


def should_grant_reward(
    action: UserAction,
    state: ProgressionState,
    schedule: RewardSchedule,
    rng: RandomSource
) -> bool:
    """
    Decide whether this completion earns a reward

    Args:
        action: The action that was just recorded by the ledger
        state: Progression state after the ledger update
        schedule: Fixed or variable schedule
        rng: Uniform [0, 1) source, only used by the variable schedule

    Returns:
        True if a reward should be generated
    """
    if schedule == RewardSchedule.FIXED:
        count = get_completion_count(state, action)
        granted = count > 0 and count % action.fixed_reward_interval == 0
        logger.debug(
            f"Fixed schedule: {action.value} completion #{count}, "
            f"interval {action.fixed_reward_interval} -> {granted}"
        )
        return granted

    chance = calculate_reward_chance(action, state.streak_days)
    roll = rng.random()
    granted = roll < chance
    logger.debug(
        f"Variable schedule: {action.value} chance {chance:.2f}, "
        f"roll {roll:.3f} -> {granted}"
    )
    return granted
