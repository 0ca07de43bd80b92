"""Global test fixtures and utilities for reward engine tests"""
import random
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from reward_engine.services.reward_service import RewardService
from reward_engine.storage.key_value import InMemoryStore
from tests.helpers import FakeClock


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def start_time():
    """Mid-morning local time, far from any day boundary"""
    return datetime(2024, 3, 10, 10, 0, 0, tzinfo=ZoneInfo("UTC"))


@pytest.fixture
def clock(start_time):
    return FakeClock(start_time)


@pytest.fixture
def seeded_rng():
    return random.Random(1234)


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def make_service(memory_store, clock, seeded_rng):
    """Factory for a loaded RewardService with injected clock, rng and store"""

    async def _make(schedule="fixed", store=None, rng=None, **kwargs):
        return await RewardService.create(
            store if store is not None else memory_store,
            schedule=schedule,
            clock=clock,
            rng=rng if rng is not None else seeded_rng,
            retry_base_delay=0,
            **kwargs,
        )

    return _make
