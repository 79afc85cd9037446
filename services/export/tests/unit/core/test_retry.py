from unittest.mock import AsyncMock, patch

import pytest

from shared.utils.retry import backoff_delays, retry_async


def test_backoff_delays_double_and_cap():
    delays = backoff_delays(5, base_delay=1.0, max_delay=4.0, jitter=0.0)
    assert delays == [1.0, 2.0, 4.0, 4.0]


@pytest.mark.asyncio
async def test_retry_async_succeeds_after_failures():
    attempts = {"n": 0}
    seen = []

    async def _connect():
        attempts["n"] += 1
        if attempts["n"] < 3:
            raise ConnectionError("clickhouse not ready")
        return "store"

    async def _on_retry(attempt, exc, sleep_for):
        seen.append(attempt)

    with patch("asyncio.sleep", new=AsyncMock()) as mock_sleep:
        result = await retry_async(_connect, retries=5, on_retry=_on_retry)

    assert result == "store"
    assert seen == [1, 2]
    assert mock_sleep.await_count == 2


@pytest.mark.asyncio
async def test_retry_async_reraises_last_error():
    async def _connect():
        raise ConnectionError("still down")

    with patch("asyncio.sleep", new=AsyncMock()):
        with pytest.raises(ConnectionError):
            await retry_async(_connect, retries=3)


@pytest.mark.asyncio
async def test_retry_async_does_not_retry_unlisted_errors():
    calls = AsyncMock(side_effect=ValueError("bad config"))
    with pytest.raises(ValueError):
        await retry_async(calls, retries=3, retry_on=(ConnectionError,))
    assert calls.await_count == 1
