"""Resilience patterns for persistence

Retry logic with exponential backoff for reads and writes of the key-value store.
"""

from reward_engine.resilience.retry import retry_with_backoff, is_retryable_error

__all__ = [
    "retry_with_backoff",
    "is_retryable_error",
]
