"""
Reward Generator

Builds the reward for a scheduled action.

Rarity table (weighted draw, iterated in this order):
- basic:   60%  (5-15 points)
- silver:  25%  (20-40 points)
- gold:    10%  (50-100 points)
- special:  5%  (150-300 points)

Milestone rewards are never drawn here; the level and streak systems build
them directly.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4
import logging

from reward_engine.models.reward import Reward, RewardType, UserAction
from reward_engine.utils.datetime_helpers import add_days
from reward_engine.utils.random_source import RandomSource, choose, uniform_int

logger = logging.getLogger(__name__)

REWARD_EXPIRY_DAYS = 30

# Ordered list, not a dict, so the cumulative walk is the same on every run
REWARD_TYPE_WEIGHTS: list[tuple[RewardType, float]] = [
    (RewardType.BASIC, 0.60),
    (RewardType.SILVER, 0.25),
    (RewardType.GOLD, 0.10),
    (RewardType.SPECIAL, 0.05),
]

REWARD_VALUE_RANGES: dict[RewardType, tuple[int, int]] = {
    RewardType.BASIC: (5, 15),
    RewardType.SILVER: (20, 40),
    RewardType.GOLD: (50, 100),
    RewardType.SPECIAL: (150, 300),
    RewardType.MILESTONE: (500, 500),
}

TYPE_NOUNS: dict[RewardType, list[str]] = {
    RewardType.BASIC: ["Star", "Token", "Badge"],
    RewardType.SILVER: ["Silver Star", "Medal", "Trophy"],
    RewardType.GOLD: ["Gold Star", "Premium Badge", "Crown"],
    RewardType.SPECIAL: ["Rare Gem", "Diamond", "Cosmic Reward"],
    RewardType.MILESTONE: ["Achievement Award", "Milestone Trophy", "Legacy Badge"],
}

ACTION_WORDS: dict[UserAction, list[str]] = {
    UserAction.COMPLETED_JOURNAL_ENTRY: ["Reflection", "Journal", "Writer's"],
    UserAction.GENERATED_STORY_CHAPTER: ["Storyteller", "Novelist", "Creative"],
    UserAction.COMPLETED_BODY_SCAN: ["Mindful", "Awareness", "Presence"],
    UserAction.META_REFLECTION: ["Insight", "Wisdom", "Metacognitive"],
}

DESCRIPTIONS: dict[RewardType, list[str]] = {
    RewardType.BASIC: [
        "A small token of appreciation for your effort.",
        "Keep up the good work!",
        "A stepping stone on your journey.",
    ],
    RewardType.SILVER: [
        "An impressive achievement worth celebrating.",
        "Your dedication is paying off!",
        "You're making remarkable progress.",
    ],
    RewardType.GOLD: [
        "A magnificent reward for exceptional dedication.",
        "Your commitment is truly inspiring!",
        "A testament to your growth mindset.",
    ],
    RewardType.SPECIAL: [
        "An extraordinary reward for your outstanding journey.",
        "A rare acknowledgment of your exceptional progress.",
        "Something truly special for your remarkable achievement.",
    ],
    RewardType.MILESTONE: [
        "A landmark achievement in your personal growth journey.",
        "A significant milestone that marks your transformation.",
        "A monumental accomplishment worth celebrating.",
    ],
}

DEFAULT_TYPE_NOUN = "Reward"
DEFAULT_ACTION_WORD = "Explorer's"
DEFAULT_DESCRIPTION = "A reward for your effort."


def select_reward_type(rng: RandomSource) -> RewardType:
    """Weighted draw over REWARD_TYPE_WEIGHTS"""
    roll = rng.random()
    cumulative = 0.0

    for reward_type, weight in REWARD_TYPE_WEIGHTS:
        cumulative += weight
        if roll < cumulative:
            return reward_type

    # Only reachable through float rounding at the top of the range
    return RewardType.BASIC


def generate_reward_value(reward_type: RewardType, rng: RandomSource) -> int:
    low, high = REWARD_VALUE_RANGES[reward_type]
    return uniform_int(rng, low, high)


def generate_reward_name(reward_type: RewardType, action: UserAction, rng: RandomSource) -> str:
    """
    Combine an action flavour word with a rarity noun, e.g. "Reflection Star"

    The action word is drawn first, then the noun.
    """
    words = ACTION_WORDS.get(action)
    action_word = choose(rng, words) if words else DEFAULT_ACTION_WORD

    nouns = TYPE_NOUNS.get(reward_type)
    noun = choose(rng, nouns) if nouns else DEFAULT_TYPE_NOUN

    return f"{action_word} {noun}"


def generate_reward_description(reward_type: RewardType, value: int, rng: RandomSource) -> str:
    sentences = DESCRIPTIONS.get(reward_type)
    sentence = choose(rng, sentences) if sentences else DEFAULT_DESCRIPTION
    return f"{sentence} Worth {value} points."


def calculate_expiry(reward_type: RewardType, date_earned: datetime) -> Optional[datetime]:
    """Milestones never expire; everything else lasts REWARD_EXPIRY_DAYS"""
    if reward_type == RewardType.MILESTONE:
        return None
    return add_days(date_earned, REWARD_EXPIRY_DAYS)


def generate_reward(action: UserAction, rng: RandomSource, now: datetime) -> Reward:
    """
    Generate the reward for a scheduled action

    Draw order: type, value, name words, description.

    Args:
        action: The action that earned the reward
        rng: Uniform [0, 1) source
        now: Creation time, becomes date_earned

    Returns:
        A new, non-milestone Reward expiring 30 days after now
    """
    reward_type = select_reward_type(rng)
    value = generate_reward_value(reward_type, rng)

    reward = Reward(
        id=str(uuid4()),
        type=reward_type,
        value=value,
        name=generate_reward_name(reward_type, action, rng),
        description=generate_reward_description(reward_type, value, rng),
        date_earned=now,
        expiry_date=calculate_expiry(reward_type, now),
        associated_action=action,
    )

    logger.info(f"Generated {reward_type.value} reward '{reward.name}' ({value} points) for {action.value}")

    return reward
