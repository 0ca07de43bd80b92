"""Reward models for the reward engine"""
from enum import Enum
from datetime import datetime
from typing import Optional, NamedTuple
from pydantic import BaseModel, ConfigDict


class RewardType(str, Enum):
    """Reward rarity, ordered from most to least common"""
    BASIC = "basic"
    SILVER = "silver"
    GOLD = "gold"
    SPECIAL = "special"
    MILESTONE = "milestone"


class RewardSchedule(str, Enum):
    """How the scheduler decides whether an action earns a reward"""
    FIXED = "fixed"
    VARIABLE = "variable"


class ActionRules(NamedTuple):
    base_points: int
    affects_streak: bool
    fixed_reward_interval: int
    variable_reward_chance: float


class UserAction(str, Enum):
    """Instrumented user events, plus two synthetic progression tags"""
    COMPLETED_JOURNAL_ENTRY = "completedJournalEntry"
    GENERATED_STORY_CHAPTER = "generatedStoryChapter"
    COMPLETED_BODY_SCAN = "completedBodyScan"
    META_REFLECTION = "metaReflection"
    STREAK = "streak"
    LEVEL_UP = "levelUp"

    @property
    def rules(self) -> ActionRules:
        return ACTION_RULES[self]

    @property
    def base_points(self) -> int:
        return self.rules.base_points

    @property
    def affects_streak(self) -> bool:
        return self.rules.affects_streak

    @property
    def fixed_reward_interval(self) -> int:
        return self.rules.fixed_reward_interval

    @property
    def variable_reward_chance(self) -> float:
        return self.rules.variable_reward_chance

    @property
    def is_synthetic(self) -> bool:
        """Synthetic actions only tag progression rewards"""
        return self in (UserAction.STREAK, UserAction.LEVEL_UP)


ACTION_RULES: dict[UserAction, ActionRules] = {
    UserAction.COMPLETED_JOURNAL_ENTRY: ActionRules(10, True, 3, 0.30),
    UserAction.GENERATED_STORY_CHAPTER: ActionRules(15, True, 2, 0.40),
    UserAction.COMPLETED_BODY_SCAN: ActionRules(8, True, 4, 0.25),
    UserAction.META_REFLECTION: ActionRules(20, False, 1, 0.50),
    UserAction.STREAK: ActionRules(0, False, 1, 1.0),
    UserAction.LEVEL_UP: ActionRules(0, False, 1, 1.0),
}


class Reward(BaseModel):
    """An earned reward. Never mutated after creation."""
    model_config = ConfigDict(frozen=True)

    id: str
    type: RewardType
    value: int
    name: str
    description: str
    date_earned: datetime
    expiry_date: Optional[datetime] = None
    associated_action: UserAction

    @property
    def is_milestone(self) -> bool:
        return self.type == RewardType.MILESTONE

    def is_expired(self, now: datetime) -> bool:
        """Milestone rewards have no expiry and never expire"""
        return self.expiry_date is not None and now > self.expiry_date
