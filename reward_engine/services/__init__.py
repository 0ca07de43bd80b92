"""
Service Layer Package

This package contains the business logic service that sits between callers
(the CLI, an app UI, a bot) and the gamification building blocks.

Core Services:
- RewardService: action recording, reward scheduling, levels, streaks, redemption
"""

from reward_engine.services.reward_service import RewardService

__all__ = [
    "RewardService",
]
