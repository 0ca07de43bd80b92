"""
RewardService - Reward & Progression Business Logic

Owns the progression state of one user and composes the gamification
building blocks on every recorded action:

    ledger -> scheduler -> (generator) -> level -> streak -> persist

All mutations run under one asyncio.Lock, so concurrent callers are
serialized. Persistence happens once per mutation; a failed write is logged
and retried with the next mutation, the in-memory state is never rolled back.
Nothing is written until the stored state has been read once, so a failed
read never overwrites saved progress.
"""

import asyncio
import logging
import random
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from reward_engine.config import (
    PERSISTENCE_MAX_RETRIES,
    PERSISTENCE_RETRY_BASE_DELAY,
    REWARD_SCHEDULE,
    TIMEZONE,
)
from reward_engine.exceptions import InvalidActionError, PersistenceError
from reward_engine.gamification import (
    apply_action,
    calculate_level_from_points,
    generate_reward,
    should_grant_reward,
    update_level,
    update_streak,
)
from reward_engine.models.progression import ProgressionState, RecordResult
from reward_engine.models.reward import Reward, RewardSchedule, UserAction
from reward_engine.observability import metrics
from reward_engine.resilience.retry import is_retryable_error, retry_with_backoff
from reward_engine.storage.key_value import KeyValueStore
from reward_engine.storage.progression_store import load_progression, save_progression
from reward_engine.utils.datetime_helpers import Clock, SystemClock
from reward_engine.utils.random_source import RandomSource

logger = logging.getLogger(__name__)


class RewardService:
    """
    Service for rewards and progression.

    Responsibilities:
    - Recording user actions (points, completion counts)
    - Scheduling and generating rewards
    - Level and streak tracking with milestone rewards
    - Reward acknowledgement and redemption
    - Loading and persisting state through a key-value store
    """

    def __init__(
        self,
        store: KeyValueStore,
        schedule: Union[RewardSchedule, str, None] = None,
        clock: Optional[Clock] = None,
        rng: Optional[RandomSource] = None,
        max_retries: int = PERSISTENCE_MAX_RETRIES,
        retry_base_delay: float = PERSISTENCE_RETRY_BASE_DELAY,
    ):
        """
        Initialize RewardService.

        Args:
            store: Durable key-value store
            schedule: Fixed or variable reward schedule (defaults to REWARD_SCHEDULE)
            clock: Time source (defaults to the system clock in TIMEZONE)
            rng: Uniform [0, 1) random source (defaults to random.Random())
            max_retries: Retries for a failed persistence write
            retry_base_delay: Delay before the first retry, in seconds
        """
        self.store = store
        self._schedule = RewardSchedule(schedule or REWARD_SCHEDULE)
        self.clock = clock or SystemClock(TIMEZONE)
        self.rng = rng or random.Random()
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay

        self._state = ProgressionState()
        self._rewards: List[Reward] = []
        self._current_reward: Optional[Reward] = None
        self._dirty = False
        self._loaded = False
        self._lock = asyncio.Lock()

        logger.debug(f"RewardService initialized with {self._schedule.value} schedule")

    @classmethod
    async def create(cls, store: KeyValueStore, **kwargs: Any) -> "RewardService":
        """Build a service and load its persisted state"""
        service = cls(store, **kwargs)
        await service.load()
        return service

    # ------------------------------------------------------------------
    # Loading and persistence
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """
        Load persisted state, replacing the in-memory state.

        An unreadable store starts the service from defaults. If the read
        failed on an I/O error, writes are held back and the read is tried
        again before the next mutation.
        """
        async with self._lock:
            if not await self._load_persisted():
                self._state = ProgressionState()
                self._rewards = []
                self._current_reward = None
                self._dirty = False
                metrics.record_level(self._state.level)

    async def _load_persisted(self) -> bool:
        """Replace the in-memory state with the stored one; False if the store could not be read"""
        try:
            state, rewards = await retry_with_backoff(
                load_progression,
                self.store,
                max_retries=self.max_retries,
                base_delay=self.retry_base_delay,
            )
        except PersistenceError as e:
            metrics.record_persistence_failure("load")
            if is_retryable_error(e):
                self._loaded = False
                logger.error(f"Could not read persisted progression, holding writes until it can be read: {e}")
            else:
                # Undecodable data is replaced by the next write
                self._loaded = True
                logger.error(f"Persisted progression is unreadable, starting fresh: {e}")
            return False

        if self._dirty:
            logger.warning("Discarding changes made while persisted progression could not be read")

        self._state = state
        self._rewards = rewards
        self._current_reward = None
        self._dirty = False
        self._loaded = True
        metrics.record_level(state.level)
        return True

    async def _ensure_loaded(self) -> None:
        if not self._loaded:
            logger.info("Retrying read of persisted progression")
            await self._load_persisted()

    async def _persist(self) -> bool:
        """Write the full state; on failure keep it dirty for the next mutation"""
        if not self._loaded:
            # Writing now would replace stored progress that was never read
            self._dirty = True
            logger.warning("Persisted progression not loaded yet, keeping changes in memory")
            return False

        if self._dirty:
            logger.info("Retrying persistence of previously unsaved progression")

        try:
            await retry_with_backoff(
                save_progression,
                self.store,
                self._state,
                list(self._rewards),
                max_retries=self.max_retries,
                base_delay=self.retry_base_delay,
            )
        except Exception as e:
            self._dirty = True
            metrics.record_persistence_failure("save")
            logger.error(f"Failed to persist progression, keeping in-memory state: {e}", exc_info=True)
            return False

        self._dirty = False
        return True

    async def flush(self) -> bool:
        """
        Persist pending changes left over from a failed write.

        Returns:
            True if nothing is left unsaved
        """
        async with self._lock:
            await self._ensure_loaded()
            if not self._dirty:
                return self._loaded
            return await self._persist()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def record_action(self, action: Union[UserAction, str]) -> RecordResult:
        """
        Record a user action and grant whatever it earns.

        Args:
            action: A real user action (or its name)

        Returns:
            RecordResult with the updated totals, the last reward granted by
            this call (new_reward) and every reward granted (rewards_granted)

        Raises:
            InvalidActionError: For unknown names and synthetic actions
        """
        action = self._coerce_action(action)

        async with self._lock:
            await self._ensure_loaded()
            now = self.clock.now()
            state = self._state
            granted: List[Reward] = []

            apply_action(state, action)
            metrics.record_action(action.value)

            if should_grant_reward(action, state, self._schedule, self.rng):
                reward = generate_reward(action, self.rng, now)
                granted.append(reward)
                metrics.record_reward(reward.type.value, "action")

            state.level, level_reward = update_level(state.total_points, state.level, now)
            if level_reward:
                granted.append(level_reward)
                metrics.record_reward(level_reward.type.value, "level_up")
            metrics.record_level(state.level, leveled_up=level_reward is not None)

            if action.affects_streak:
                state.streak_days, state.last_streak_date, streak_reward = update_streak(
                    now, state.last_streak_date, state.streak_days
                )
                if streak_reward:
                    granted.append(streak_reward)
                    metrics.record_reward(streak_reward.type.value, "streak")
                    metrics.record_streak_milestone(state.streak_days)

            if granted:
                self._rewards.extend(granted)
                self._current_reward = granted[-1]

            await self._persist()

            logger.info(
                f"Recorded {action.value}: points={state.total_points}, level={state.level}, "
                f"streak={state.streak_days}, rewards={len(granted)}"
            )

            return RecordResult(
                total_points=state.total_points,
                level=state.level,
                streak_days=state.streak_days,
                new_reward=self._current_reward if granted else None,
                rewards_granted=granted,
                leveled_up=level_reward is not None,
            )

    def acknowledge_reward(self) -> None:
        """Clear the currently displayed reward; it stays in the collection"""
        self._current_reward = None

    async def redeem_reward(self, reward_id: str) -> bool:
        """
        Remove a reward from the earned collection.

        Returns:
            True if a reward was removed, False if no reward has that id
        """
        async with self._lock:
            await self._ensure_loaded()
            for index, reward in enumerate(self._rewards):
                if reward.id == reward_id:
                    break
            else:
                logger.debug(f"Redeem ignored, no reward with id {reward_id}")
                return False

            del self._rewards[index]
            if self._current_reward is not None and self._current_reward.id == reward_id:
                self._current_reward = None

            await self._persist()
            logger.info(f"Redeemed reward {reward_id} ({reward.name}, {reward.value} points)")
            return True

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def schedule(self) -> RewardSchedule:
        return self._schedule

    @property
    def total_points(self) -> int:
        return self._state.total_points

    @property
    def level(self) -> int:
        return self._state.level

    @property
    def streak_days(self) -> int:
        return self._state.streak_days

    @property
    def last_streak_date(self) -> Optional[datetime]:
        return self._state.last_streak_date

    @property
    def completion_counts(self) -> Dict[str, int]:
        return dict(self._state.completion_counts)

    @property
    def rewards_earned(self) -> Tuple[Reward, ...]:
        return tuple(self._rewards)

    @property
    def current_reward(self) -> Optional[Reward]:
        return self._current_reward

    @property
    def has_pending_reward(self) -> bool:
        return self._current_reward is not None

    @property
    def has_unsaved_changes(self) -> bool:
        return self._dirty

    def snapshot(self) -> ProgressionState:
        return self._state.model_copy(deep=True)

    def level_progress(self) -> Dict[str, Any]:
        return calculate_level_from_points(self._state.total_points)

    def find_reward(self, reward_id: str) -> Optional[Reward]:
        return next((r for r in self._rewards if r.id == reward_id), None)

    def active_rewards(self, now: Optional[datetime] = None) -> List[Reward]:
        now = now or self.clock.now()
        return [r for r in self._rewards if not r.is_expired(now)]

    def expired_rewards(self, now: Optional[datetime] = None) -> List[Reward]:
        now = now or self.clock.now()
        return [r for r in self._rewards if r.is_expired(now)]

    def milestone_rewards(self) -> List[Reward]:
        return [r for r in self._rewards if r.is_milestone]

    @staticmethod
    def _coerce_action(action: Union[UserAction, str]) -> UserAction:
        if not isinstance(action, UserAction):
            try:
                action = UserAction(action)
            except ValueError:
                raise InvalidActionError(action, operation="record_action")
        if action.is_synthetic:
            raise InvalidActionError(action.value, operation="record_action")
        return action
