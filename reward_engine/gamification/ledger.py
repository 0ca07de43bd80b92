"""
Action Ledger

Records a user action: adds its base points and bumps the per-action
completion counter. The counter is incremented before the scheduler runs, so
the Nth completion (not the N-1th) is the one a fixed schedule rewards.
"""

import logging

from reward_engine.exceptions import InvalidActionError
from reward_engine.models.progression import ProgressionState
from reward_engine.models.reward import UserAction

logger = logging.getLogger(__name__)


def apply_action(state: ProgressionState, action: UserAction) -> int:
    """
    Add an action to the ledger

    Not idempotent: recording the same action twice adds its points twice.

    Args:
        state: Progression state, updated in place
        action: A real (non-synthetic) user action

    Returns:
        The action's completion count after this call

    Raises:
        InvalidActionError: If action is a synthetic progression tag
    """
    if not isinstance(action, UserAction) or action.is_synthetic:
        raise InvalidActionError(action, operation="apply_action")

    state.total_points += action.base_points
    count = state.completion_counts.get(action.value, 0) + 1
    state.completion_counts[action.value] = count

    logger.debug(
        f"Ledger: {action.value} +{action.base_points} points "
        f"(total {state.total_points}, completion #{count})"
    )

    return count


def get_completion_count(state: ProgressionState, action: UserAction) -> int:
    return state.completion_counts.get(action.value, 0)
