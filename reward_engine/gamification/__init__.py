"""
Reward and progression logic for the reward engine

This package holds the pure building blocks composed by RewardEngine:
- Action ledger (points and completion counts)
- Reward scheduler (fixed and variable ratio)
- Reward generator (weighted rarity draw, names, descriptions)
- Leveling and daily streak tracking with milestone rewards
"""

from reward_engine.gamification.ledger import apply_action, get_completion_count
from reward_engine.gamification.scheduler import calculate_reward_chance, should_grant_reward
from reward_engine.gamification.reward_generator import generate_reward, select_reward_type
from reward_engine.gamification.level_system import calculate_level_from_points, update_level
from reward_engine.gamification.streak_system import update_streak

__all__ = [
    "apply_action",
    "get_completion_count",
    "calculate_reward_chance",
    "should_grant_reward",
    "generate_reward",
    "select_reward_type",
    "calculate_level_from_points",
    "update_level",
    "update_streak",
]
