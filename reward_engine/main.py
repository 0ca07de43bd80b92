"""Command line entry point for the reward engine

Usage:
    python -m reward_engine.main record completedJournalEntry
    python -m reward_engine.main status
    python -m reward_engine.main rewards --view milestones
    python -m reward_engine.main redeem <reward-id>
"""
import argparse
import asyncio
import logging
import sys
from datetime import datetime
from typing import List, Optional

from reward_engine.config import DATA_PATH, LOG_LEVEL, REWARD_STATE_FILE, validate_config
from reward_engine.exceptions import ConfigurationError, InvalidActionError
from reward_engine.models.reward import Reward, UserAction
from reward_engine.services.reward_service import RewardService
from reward_engine.storage.key_value import JsonFileStore, KeyValueStore

logger = logging.getLogger(__name__)

RECORDABLE_ACTIONS = [a.value for a in UserAction if not a.is_synthetic]
REWARD_VIEWS = ("active", "milestones", "expired", "all")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reward-engine",
        description="Record actions and inspect rewards, levels and streaks",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    record = subparsers.add_parser("record", help="Record a user action")
    record.add_argument("action", choices=RECORDABLE_ACTIONS)

    subparsers.add_parser("status", help="Show points, level and streak")

    rewards = subparsers.add_parser("rewards", help="List earned rewards")
    rewards.add_argument("--view", choices=REWARD_VIEWS, default="active")

    redeem = subparsers.add_parser("redeem", help="Redeem (remove) an earned reward")
    redeem.add_argument("reward_id")

    return parser


def format_reward(reward: Reward, now: datetime) -> str:
    if reward.expiry_date is None:
        expiry = "never expires"
    elif reward.is_expired(now):
        expiry = "expired"
    else:
        expiry = f"expires {reward.expiry_date.date().isoformat()}"
    return f"[{reward.type.value}] {reward.name} - {reward.value} points ({expiry}) id={reward.id}"


async def run(args: argparse.Namespace, store: Optional[KeyValueStore] = None) -> int:
    """Execute one CLI command against the store; returns the exit code"""
    store = store or JsonFileStore(DATA_PATH / REWARD_STATE_FILE)
    service = await RewardService.create(store)
    now = service.clock.now()

    if args.command == "record":
        result = await service.record_action(args.action)
        print(f"Points: {result.total_points}  Level: {result.level}  Streak: {result.streak_days} days")
        for reward in result.rewards_granted:
            print(f"New reward: {format_reward(reward, now)}")
            print(f"  {reward.description}")
        if result.leveled_up:
            print(f"Level up! You are now level {result.level}")
        if service.has_unsaved_changes:
            print("Warning: progress could not be saved", file=sys.stderr)
            return 1
        return 0

    if args.command == "status":
        progress = service.level_progress()
        print(f"Points: {service.total_points}")
        print(
            f"Level: {service.level} "
            f"({progress['points_to_next_level']} points to level {progress['current_level'] + 1})"
        )
        print(f"Streak: {service.streak_days} days")
        print(f"Rewards: {len(service.rewards_earned)}")
        return 0

    if args.command == "rewards":
        if args.view == "active":
            rewards = service.active_rewards(now)
        elif args.view == "milestones":
            rewards = service.milestone_rewards()
        elif args.view == "expired":
            rewards = service.expired_rewards(now)
        else:
            rewards = list(service.rewards_earned)

        if not rewards:
            print("No rewards yet! Keep going to earn rewards for your progress.")
        for reward in rewards:
            print(format_reward(reward, now))
        return 0

    if args.command == "redeem":
        reward = service.find_reward(args.reward_id)
        if not await service.redeem_reward(args.reward_id):
            print(f"No reward with id {args.reward_id}")
            return 1
        print(f"Redeemed {reward.name} ({reward.value} points)")
        return 0

    return 2


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point"""
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    )

    args = build_parser().parse_args(argv)

    try:
        validate_config()
        return asyncio.run(run(args))
    except ConfigurationError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        return 2
    except InvalidActionError as e:
        print(e.user_message, file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
