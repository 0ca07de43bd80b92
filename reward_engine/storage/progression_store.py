"""Load and save progression state through a key-value store

Persisted layout (one record per user):
    totalPoints       int
    level             int
    streakDays        int
    lastStreakDate    ISO-8601 string or null
    completionCounts  {actionName: int}
    rewardsEarned     JSON-encoded list of rewards

Each key is decoded on its own. A bad value falls back to its default and is
logged; it never takes the other keys down with it.
"""
import logging
from typing import Any, Dict, List, Tuple

from pydantic import TypeAdapter, ValidationError

from reward_engine.models.progression import ProgressionState
from reward_engine.models.reward import Reward
from reward_engine.storage.key_value import KeyValueStore
from reward_engine.utils.datetime_helpers import parse_iso, to_iso

logger = logging.getLogger(__name__)

KEY_TOTAL_POINTS = "totalPoints"
KEY_LEVEL = "level"
KEY_STREAK_DAYS = "streakDays"
KEY_LAST_STREAK_DATE = "lastStreakDate"
KEY_COMPLETION_COUNTS = "completionCounts"
KEY_REWARDS_EARNED = "rewardsEarned"

_rewards_adapter = TypeAdapter(List[Reward])


def _as_int(key: str, raw: Any, default: int, minimum: int) -> int:
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring malformed {key}={raw!r}, using {default}")
        return default
    return max(value, minimum)


def decode_completion_counts(raw: Any) -> Dict[str, int]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        logger.warning(f"Ignoring malformed {KEY_COMPLETION_COUNTS}: expected a mapping")
        return {}

    counts = {}
    for action_name, count in raw.items():
        try:
            counts[str(action_name)] = max(int(count), 0)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring malformed completion count for {action_name}: {count!r}")
    return counts


def decode_rewards(raw: Any) -> List[Reward]:
    """
    Decode the persisted rewards list

    Returns:
        Decoded rewards, or an empty list if the payload cannot be decoded
    """
    if raw is None:
        return []
    try:
        if isinstance(raw, (str, bytes)):
            return _rewards_adapter.validate_json(raw)
        return _rewards_adapter.validate_python(raw)
    except (ValidationError, ValueError) as e:
        logger.error(f"Failed to decode rewards, starting with an empty list: {e}")
        return []


def encode_rewards(rewards: List[Reward]) -> str:
    return _rewards_adapter.dump_json(rewards).decode("utf-8")


async def load_progression(store: KeyValueStore) -> Tuple[ProgressionState, List[Reward]]:
    """
    Load progression state and earned rewards

    Absent values default to 0 / empty / None, and level to 1.

    Raises:
        PersistenceError: If the store itself cannot be read
    """
    total_points = _as_int(KEY_TOTAL_POINTS, await store.get(KEY_TOTAL_POINTS), 0, 0)
    level = _as_int(KEY_LEVEL, await store.get(KEY_LEVEL), 1, 1)
    streak_days = _as_int(KEY_STREAK_DAYS, await store.get(KEY_STREAK_DAYS), 0, 0)

    raw_last_date = await store.get(KEY_LAST_STREAK_DATE)
    try:
        last_streak_date = parse_iso(raw_last_date) if isinstance(raw_last_date, str) else None
    except ValueError:
        logger.warning(f"Ignoring malformed {KEY_LAST_STREAK_DATE}={raw_last_date!r}")
        last_streak_date = None

    state = ProgressionState(
        total_points=total_points,
        level=level,
        streak_days=streak_days,
        last_streak_date=last_streak_date,
        completion_counts=decode_completion_counts(await store.get(KEY_COMPLETION_COUNTS)),
    )
    rewards = decode_rewards(await store.get(KEY_REWARDS_EARNED))

    logger.info(
        f"Loaded progression: {state.total_points} points, level {state.level}, "
        f"streak {state.streak_days} days, {len(rewards)} rewards"
    )

    return state, rewards


async def save_progression(store: KeyValueStore, state: ProgressionState, rewards: List[Reward]) -> None:
    """
    Persist progression state and earned rewards in one write

    Raises:
        PersistenceError: If the store rejects the write
    """
    await store.set_many({
        KEY_TOTAL_POINTS: state.total_points,
        KEY_LEVEL: state.level,
        KEY_STREAK_DAYS: state.streak_days,
        KEY_LAST_STREAK_DATE: to_iso(state.last_streak_date),
        KEY_COMPLETION_COUNTS: dict(state.completion_counts),
        KEY_REWARDS_EARNED: encode_rewards(rewards),
    })
    logger.debug(f"Saved progression with {len(rewards)} rewards")
