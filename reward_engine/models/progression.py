"""Progression state and engine result models"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from reward_engine.models.reward import Reward


class ProgressionState(BaseModel):
    """Points, level, streak and completion counts for one user"""
    total_points: int = 0
    level: int = 1
    streak_days: int = 0
    last_streak_date: Optional[datetime] = None
    completion_counts: dict[str, int] = Field(default_factory=dict)  # keyed by action name


class RecordResult(BaseModel):
    """Outcome of recording one user action"""
    total_points: int
    level: int
    streak_days: int
    new_reward: Optional[Reward] = None  # last reward granted by this call
    rewards_granted: list[Reward] = Field(default_factory=list)
    leveled_up: bool = False
