"""
End-to-end reward flows

Runs RewardService against real stores across several simulated days:
fixed-ratio rewards, streak milestones, multi-level jumps, reward expiry
and persistence across service instances.
"""
import json
from pathlib import Path

import pytest

from reward_engine.models.reward import RewardType, UserAction
from reward_engine.services.reward_service import RewardService
from reward_engine.storage.key_value import InMemoryStore, JsonFileStore
from tests.helpers import ConstantRandom

JOURNAL = UserAction.COMPLETED_JOURNAL_ENTRY


@pytest.mark.asyncio
async def test_three_journal_entries_on_fixed_schedule(make_service):
    service = await make_service("fixed")

    results = [await service.record_action(JOURNAL) for _ in range(3)]

    assert [r.total_points for r in results] == [10, 20, 30]
    assert [len(r.rewards_granted) for r in results] == [0, 0, 1]
    reward = results[-1].new_reward
    assert reward.type in (RewardType.BASIC, RewardType.SILVER, RewardType.GOLD, RewardType.SPECIAL)
    assert (reward.expiry_date - reward.date_earned).days == 30
    assert reward.description.endswith(f"Worth {reward.value} points.")


@pytest.mark.asyncio
async def test_week_long_streak_earns_milestones(make_service, clock):
    # No action rewards, so only progression milestones are granted
    service = await make_service("variable", rng=ConstantRandom(0.99))

    for day in range(7):
        if day:
            clock.advance(days=1)
        await service.record_action(JOURNAL)

    milestones = service.milestone_rewards()
    assert service.streak_days == 7
    assert [r.value for r in milestones] == [30, 70]
    assert milestones[-1].name == "7-Day Streak Achievement"
    assert milestones[-1].expiry_date is None
    assert all(r.associated_action == UserAction.STREAK for r in milestones)


@pytest.mark.asyncio
async def test_multi_level_jump_grants_single_reward(make_service):
    store = InMemoryStore({"totalPoints": 230, "level": 1})
    service = await make_service("fixed", store=store)

    result = await service.record_action(UserAction.META_REFLECTION)

    level_rewards = [r for r in result.rewards_granted if r.associated_action == UserAction.LEVEL_UP]
    assert result.total_points == 250
    assert result.level == 3
    assert result.leveled_up is True
    assert len(level_rewards) == 1
    assert level_rewards[0].value == 300
    assert level_rewards[0].name == "Level 3 Achievement"
    assert store.snapshot()["level"] == 3


@pytest.mark.asyncio
async def test_rewards_expire_after_thirty_days(make_service, clock):
    service = await make_service("fixed")
    result = await service.record_action(UserAction.META_REFLECTION)

    clock.advance(days=30)
    assert service.expired_rewards() == []

    clock.advance(days=1)
    assert service.expired_rewards() == [result.new_reward]
    assert service.active_rewards() == []


@pytest.mark.asyncio
async def test_json_file_persistence_across_instances(tmp_path, clock, seeded_rng):
    path = tmp_path / "reward_state.json"

    first = await RewardService.create(
        JsonFileStore(path), schedule="fixed", clock=clock, rng=seeded_rng, retry_base_delay=0
    )
    for _ in range(3):
        await first.record_action(JOURNAL)
    clock.advance(days=1)
    await first.record_action(UserAction.GENERATED_STORY_CHAPTER)

    second = await RewardService.create(
        JsonFileStore(path), schedule="fixed", clock=clock, rng=seeded_rng, retry_base_delay=0
    )

    assert second.total_points == 45
    assert second.streak_days == 2
    assert second.completion_counts == {"completedJournalEntry": 3, "generatedStoryChapter": 1}
    assert second.rewards_earned == first.rewards_earned
    assert second.current_reward is None

    redeemed = second.rewards_earned[0].id
    assert await second.redeem_reward(redeemed) is True

    third = await RewardService.create(JsonFileStore(path), schedule="fixed", clock=clock, rng=seeded_rng)
    assert third.find_reward(redeemed) is None


@pytest.mark.asyncio
async def test_momentary_read_failure_keeps_saved_progress(tmp_path, clock, seeded_rng, monkeypatch):
    path = tmp_path / "reward_state.json"
    path.write_text(json.dumps({"totalPoints": 5000, "level": 12, "streakDays": 40}))

    real_read_text = Path.read_text
    failures = [PermissionError("Permission denied")]

    def read_text_once_locked(self, *args, **kwargs):
        if failures:
            raise failures.pop()
        return real_read_text(self, *args, **kwargs)

    monkeypatch.setattr(Path, "read_text", read_text_once_locked)

    service = await RewardService.create(
        JsonFileStore(path), schedule="fixed", clock=clock, rng=seeded_rng, max_retries=0, retry_base_delay=0
    )
    assert service.total_points == 0

    await service.record_action(UserAction.META_REFLECTION)

    saved = json.loads(real_read_text(path))
    assert saved["totalPoints"] == 5020
    assert saved["streakDays"] == 40
    assert saved["level"] >= 12
