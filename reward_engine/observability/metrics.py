"""
Prometheus metrics definitions for the reward engine.

Metrics are organized by category:
- Engagement: actions recorded, rewards granted, level ups, streak milestones
- Persistence: failed writes and retry attempts

The record_* helpers never raise; a broken metrics backend must not break
reward processing. They are no-ops when ENABLE_METRICS is false.
"""

import logging
from prometheus_client import Counter, Gauge

from reward_engine.config import ENABLE_METRICS

logger = logging.getLogger(__name__)

# =============================================================================
# Engagement Metrics
# =============================================================================

actions_recorded_total = Counter(
    "reward_actions_recorded_total",
    "Total user actions recorded by the ledger",
    ["action"],
)

rewards_granted_total = Counter(
    "rewards_granted_total",
    "Total rewards granted",
    ["reward_type", "source"],  # source: action/level_up/streak
)

level_ups_total = Counter(
    "reward_level_ups_total",
    "Total level-up events",
)

streak_milestones_total = Counter(
    "reward_streak_milestones_total",
    "Total streak milestone rewards",
    ["streak_days"],
)

user_level = Gauge(
    "reward_user_level",
    "Current level of the engine's user",
)

# =============================================================================
# Persistence Metrics
# =============================================================================

persistence_failures_total = Counter(
    "reward_persistence_failures_total",
    "Total persistence operations that failed after retries",
    ["operation"],  # operation: load/save
)

persistence_retries_total = Counter(
    "reward_persistence_retries_total",
    "Total persistence retry attempts",
)


def record_action(action: str) -> None:
    if not ENABLE_METRICS:
        return
    try:
        actions_recorded_total.labels(action=action).inc()
    except Exception as e:
        logger.error(f"Failed to record action metric: {e}")


def record_reward(reward_type: str, source: str) -> None:
    """
    Record a granted reward.

    Args:
        reward_type: basic/silver/gold/special/milestone
        source: action/level_up/streak
    """
    if not ENABLE_METRICS:
        return
    try:
        rewards_granted_total.labels(reward_type=reward_type, source=source).inc()
    except Exception as e:
        logger.error(f"Failed to record reward metric: {e}")


def record_level(level: int, leveled_up: bool = False) -> None:
    if not ENABLE_METRICS:
        return
    try:
        user_level.set(level)
        if leveled_up:
            level_ups_total.inc()
    except Exception as e:
        logger.error(f"Failed to record level metric: {e}")


def record_streak_milestone(streak_days: int) -> None:
    if not ENABLE_METRICS:
        return
    try:
        streak_milestones_total.labels(streak_days=str(streak_days)).inc()
    except Exception as e:
        logger.error(f"Failed to record streak milestone metric: {e}")


def record_persistence_failure(operation: str) -> None:
    if not ENABLE_METRICS:
        return
    try:
        persistence_failures_total.labels(operation=operation).inc()
    except Exception as e:
        logger.error(f"Failed to record persistence failure metric: {e}")


def record_persistence_retry() -> None:
    if not ENABLE_METRICS:
        return
    try:
        persistence_retries_total.inc()
    except Exception as e:
        logger.error(f"Failed to record persistence retry metric: {e}")
