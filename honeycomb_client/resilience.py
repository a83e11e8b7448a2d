"""Resilience utilities: bounded retry of rate-limited requests."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from .decoder import decode
from .errors import TooManyRetries
from .transport import TransportResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for rate-limit retry behavior."""
    max_retries: int = 12
    delay_seconds: float = 5.0
    rate_limit_status: int = 429


class RetryingExecutor:
    """
    Runs one logical request, retrying only while the server rate limits it.

    Each rate-limited response costs one attempt from the budget and is
    followed by a fixed delay. Any other response is decoded; a decode
    failure is terminal and never retried. Transport errors propagate
    untouched.

    Usage:
        executor = RetryingExecutor(RetryConfig())
        query = await executor.execute(
            lambda: transport.send("POST", "queries/my-dataset", json=body),
            Query.from_dict,
        )
    """

    def __init__(self, config: RetryConfig | None = None, sleep: Sleep = asyncio.sleep):
        self.config = config or RetryConfig()
        self._sleep = sleep

    async def execute(
        self,
        send: Callable[[], Awaitable[TransportResponse]],
        parse: Callable[[Any], T],
    ) -> T:
        """
        Send the request until it is not rate limited, then decode it.

        Args:
            send: Issues the same request on every call
            parse: Parser for the decoded JSON body

        Returns:
            The parsed response

        Raises:
            TooManyRetries: If every attempt in the budget was rate limited
            DecodeError: If the final response does not parse
            TransportError: If the request could not be sent
        """
        remaining = self.config.max_retries
        while True:
            response = await send()
            if response.status_code != self.config.rate_limit_status:
                return decode(response, parse)

            remaining -= 1
            if remaining <= 0:
                raise TooManyRetries(
                    f"Rate limited {self.config.max_retries} times, giving up",
                    attempts=self.config.max_retries,
                    status_code=response.status_code,
                )

            logger.warning(
                f"Rate limited, retrying in {self.config.delay_seconds:.1f}s "
                f"({remaining} attempts left)"
            )
            await self._sleep(self.config.delay_seconds)
