# clients/retry.py
from __future__ import annotations

import asyncio
import random
from typing import Any, Awaitable, Callable

import httpx

from core.errors import DataSourceTimeout, DataSourceUnavailable
from core.logger import get_logger

logger = get_logger("retry")


class RetryConfig:
    """Configuration for retry behavior"""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 0.5,
        max_delay: float = 8.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
        retryable_status_codes: tuple[int, ...] = (429, 500, 502, 503, 504),
    ):
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.retryable_status_codes = retryable_status_codes


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """Exponential backoff with optional jitter"""
    delay = min(config.base_delay * (config.exponential_base**attempt), config.max_delay)
    if config.jitter:
        delay = delay * (0.5 + random.random())
    return delay


def is_retryable_error(error: Exception, config: RetryConfig) -> bool:
    if isinstance(error, (httpx.TimeoutException, httpx.NetworkError, asyncio.TimeoutError)):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in config.retryable_status_codes
    return False


def _is_timeout(error: Exception) -> bool:
    return isinstance(error, (httpx.TimeoutException, asyncio.TimeoutError))


class RetryableClient:
    """
    httpx.AsyncClient wrapper with bounded retries.

    Failures leave this class as DataSourceTimeout (every attempt timed out
    last) or DataSourceUnavailable (anything else), never as raw httpx errors.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: RetryConfig | None = None,
        source: str = "upstream",
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.client = client
        self.config = config or RetryConfig()
        self.source = source
        self._sleep = sleep

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        last_error: Exception | None = None

        for attempt in range(self.config.max_attempts):
            try:
                response = await self.client.request(method, url, **kwargs)
                response.raise_for_status()
                return response
            except httpx.HTTPError as e:
                last_error = e

                if not is_retryable_error(e, self.config):
                    logger.error(
                        "Non-retryable upstream error",
                        source=self.source,
                        method=method,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    raise DataSourceUnavailable(f"{self.source} request failed: {e}") from e

                if attempt < self.config.max_attempts - 1:
                    delay = calculate_delay(attempt, self.config)

                    # Special handling for rate limits
                    if isinstance(e, httpx.HTTPStatusError) and e.response.status_code == 429:
                        retry_after = e.response.headers.get("Retry-After")
                        if retry_after and retry_after.replace(".", "", 1).isdigit():
                            delay = min(max(delay, float(retry_after)), self.config.max_delay)

                    logger.warning(
                        "Retrying upstream request",
                        source=self.source,
                        method=method,
                        attempt=attempt + 1,
                        max_attempts=self.config.max_attempts,
                        delay=delay,
                        error=str(e),
                    )
                    await self._sleep(delay)

        logger.error(
            "All retry attempts exhausted",
            source=self.source,
            attempts=self.config.max_attempts,
            error=str(last_error),
        )
        if last_error is not None and _is_timeout(last_error):
            raise DataSourceTimeout(
                f"{self.source} timed out after {self.config.max_attempts} attempts"
            ) from last_error
        raise DataSourceUnavailable(
            f"{self.source} unavailable after {self.config.max_attempts} attempts: {last_error}"
        ) from last_error

    async def get(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def aclose(self) -> None:
        await self.client.aclose()
