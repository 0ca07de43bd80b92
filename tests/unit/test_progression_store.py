"""Unit tests for progression state persistence"""
import json
from datetime import datetime, timedelta
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import pytest

from reward_engine.models.progression import ProgressionState
from reward_engine.models.reward import Reward, RewardType, UserAction
from reward_engine.storage.key_value import InMemoryStore
from reward_engine.storage.progression_store import (
    decode_completion_counts,
    decode_rewards,
    encode_rewards,
    load_progression,
    save_progression,
)


@pytest.fixture
def earned_at():
    return datetime(2024, 3, 10, 10, 0, tzinfo=ZoneInfo("UTC"))


@pytest.fixture
def sample_reward(earned_at):
    return Reward(
        id="reward-1",
        type=RewardType.SILVER,
        value=25,
        name="Insight Medal",
        description="Your dedication is paying off! Worth 25 points.",
        date_earned=earned_at,
        expiry_date=earned_at + timedelta(days=30),
        associated_action=UserAction.META_REFLECTION,
    )


# ============================================================================
# Loading
# ============================================================================

@pytest.mark.asyncio
async def test_load_empty_store_gives_defaults():
    state, rewards = await load_progression(InMemoryStore())

    assert state == ProgressionState()
    assert state.level == 1
    assert rewards == []


@pytest.mark.asyncio
async def test_load_malformed_values_fall_back_individually():
    store = InMemoryStore({
        "totalPoints": "lots",
        "level": 0,
        "streakDays": -4,
        "lastStreakDate": "last tuesday",
        "completionCounts": {"completedJournalEntry": "3", "metaReflection": "x"},
    })

    state, _ = await load_progression(store)

    assert state.total_points == 0
    assert state.level == 1
    assert state.streak_days == 0
    assert state.last_streak_date is None
    assert state.completion_counts == {"completedJournalEntry": 3}


@pytest.mark.asyncio
async def test_save_then_load(sample_reward, earned_at):
    store = InMemoryStore()
    state = ProgressionState(
        total_points=120,
        level=2,
        streak_days=3,
        last_streak_date=earned_at,
        completion_counts={"metaReflection": 6},
    )

    await save_progression(store, state, [sample_reward])
    loaded_state, loaded_rewards = await load_progression(store)

    assert loaded_state == state
    assert loaded_rewards == [sample_reward]


@pytest.mark.asyncio
async def test_save_uses_single_write(sample_reward):
    store = AsyncMock()

    await save_progression(store, ProgressionState(total_points=10), [sample_reward])

    store.set_many.assert_awaited_once()
    values = store.set_many.await_args.args[0]
    assert set(values) == {
        "totalPoints", "level", "streakDays", "lastStreakDate", "completionCounts", "rewardsEarned",
    }
    assert values["lastStreakDate"] is None
    assert isinstance(values["rewardsEarned"], str)


# ============================================================================
# Decoding helpers
# ============================================================================

def test_encode_rewards_is_json_list(sample_reward):
    payload = json.loads(encode_rewards([sample_reward]))

    assert payload[0]["id"] == "reward-1"
    assert payload[0]["type"] == "silver"
    assert payload[0]["associated_action"] == "metaReflection"


def test_decode_rewards_accepts_python_values(sample_reward):
    raw = json.loads(encode_rewards([sample_reward]))

    assert decode_rewards(raw) == [sample_reward]


def test_decode_rewards_bad_payload_gives_empty_list(caplog):
    assert decode_rewards('[{"id": "missing-fields"}]') == []
    assert "Failed to decode rewards" in caplog.text


def test_decode_rewards_none():
    assert decode_rewards(None) == []


def test_decode_completion_counts_rejects_non_mapping():
    assert decode_completion_counts(["completedJournalEntry"]) == {}
    assert decode_completion_counts(None) == {}
