"""Configuration management"""
import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from dotenv import load_dotenv

from reward_engine.exceptions import ConfigurationError

load_dotenv()

# Reward schedule
# - 'variable' (default): probability-based rewards boosted by the streak
# - 'fixed': reward on every Nth completion of an action
REWARD_SCHEDULE: str = os.getenv("REWARD_SCHEDULE", "variable").lower()

# Storage
DATA_PATH: Path = Path(os.getenv("DATA_PATH", "./data"))
REWARD_STATE_FILE: str = os.getenv("REWARD_STATE_FILE", "reward_state.json")

# Calendar days for streaks are computed in this timezone
TIMEZONE: str = os.getenv("TIMEZONE", "UTC")

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Persistence retries
PERSISTENCE_MAX_RETRIES: int = int(os.getenv("PERSISTENCE_MAX_RETRIES", "2"))
PERSISTENCE_RETRY_BASE_DELAY: float = float(os.getenv("PERSISTENCE_RETRY_BASE_DELAY", "0.05"))

# Metrics
ENABLE_METRICS: bool = os.getenv("ENABLE_METRICS", "true").lower() == "true"

VALID_SCHEDULES = ("fixed", "variable")


# Validation
def validate_config() -> None:
    """Validate required configuration"""
    if REWARD_SCHEDULE not in VALID_SCHEDULES:
        raise ConfigurationError(
            f"REWARD_SCHEDULE must be one of {', '.join(VALID_SCHEDULES)}, got '{REWARD_SCHEDULE}'",
            config_key="REWARD_SCHEDULE",
        )
    try:
        ZoneInfo(TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(
            f"Unknown TIMEZONE '{TIMEZONE}'",
            config_key="TIMEZONE",
            cause=e,
        )
    if PERSISTENCE_MAX_RETRIES < 0:
        raise ConfigurationError(
            "PERSISTENCE_MAX_RETRIES must not be negative",
            config_key="PERSISTENCE_MAX_RETRIES",
        )
    if not REWARD_STATE_FILE:
        raise ConfigurationError("REWARD_STATE_FILE is required", config_key="REWARD_STATE_FILE")
