"""Unit tests for retry logic"""
import pytest
from reward_engine.exceptions import StorageWriteError
from reward_engine.resilience.retry import (
    retry_with_backoff,
    is_retryable_error,
    calculate_backoff,
    MAX_DELAY,
)


def test_is_retryable_error_os_errors():
    """Test that I/O errors are retryable"""
    assert is_retryable_error(OSError("Disk full")) == True
    assert is_retryable_error(PermissionError("Locked")) == True


def test_is_retryable_error_wrapped_storage_errors():
    """A storage error is retryable only when an I/O error caused it"""
    assert is_retryable_error(StorageWriteError("Write failed", cause=OSError("busy"))) == True
    assert is_retryable_error(StorageWriteError("Write failed", cause=TypeError("bad"))) == False
    assert is_retryable_error(StorageWriteError("Write failed")) == False


def test_is_retryable_error_non_retryable():
    """Test that non-retryable errors are identified correctly"""
    assert is_retryable_error(ValueError("Bad value")) == False
    assert is_retryable_error(KeyError("Missing key")) == False
    assert is_retryable_error(TypeError("Type error")) == False


def test_calculate_backoff():
    """Test exponential backoff calculation"""
    delay_0 = calculate_backoff(0, base_delay=0.1)
    assert 0.09 <= delay_0 <= 0.11

    delay_1 = calculate_backoff(1, base_delay=0.1)
    assert 0.18 <= delay_1 <= 0.22

    delay_2 = calculate_backoff(2, base_delay=0.1)
    assert 0.36 <= delay_2 <= 0.44

    assert delay_1 > delay_0
    assert delay_2 > delay_1


def test_calculate_backoff_max_delay():
    """Test that backoff respects max delay"""
    delay = calculate_backoff(20, base_delay=0.1)
    assert delay <= MAX_DELAY * 1.1


def test_calculate_backoff_zero_base():
    assert calculate_backoff(3, base_delay=0) == 0


@pytest.mark.asyncio
async def test_retry_with_backoff_success_first_try():
    """Test that function succeeds on first try"""
    call_count = 0

    async def save():
        nonlocal call_count
        call_count += 1
        return "saved"

    result = await retry_with_backoff(save, max_retries=2, base_delay=0)

    assert result == "saved"
    assert call_count == 1


@pytest.mark.asyncio
async def test_retry_with_backoff_success_after_transient_failures():
    """Test that transient failures are retried"""
    call_count = 0

    async def save():
        nonlocal call_count
        call_count += 1
        if call_count < 3:
            raise OSError("Resource temporarily unavailable")
        return "saved"

    result = await retry_with_backoff(save, max_retries=3, base_delay=0)

    assert result == "saved"
    assert call_count == 3


@pytest.mark.asyncio
async def test_retry_with_backoff_exhausted():
    """Test that the last error is raised once retries run out"""
    call_count = 0

    async def save():
        nonlocal call_count
        call_count += 1
        raise OSError("Disk full")

    with pytest.raises(OSError):
        await retry_with_backoff(save, max_retries=2, base_delay=0)

    assert call_count == 3  # Initial + 2 retries


@pytest.mark.asyncio
async def test_retry_with_backoff_non_retryable_error():
    """Test that non-retryable errors fail immediately"""
    call_count = 0

    async def save():
        nonlocal call_count
        call_count += 1
        raise ValueError("Cannot serialize")

    with pytest.raises(ValueError):
        await retry_with_backoff(save, max_retries=3, base_delay=0)

    assert call_count == 1


@pytest.mark.asyncio
async def test_retry_with_backoff_passes_arguments():
    received = {}

    async def save(store, state, *, flag=False):
        received.update(store=store, state=state, flag=flag)

    await retry_with_backoff(save, "store", "state", max_retries=0, flag=True)

    assert received == {"store": "store", "state": "state", "flag": True}

