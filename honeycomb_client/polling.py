"""Polling of asynchronous server-side computations."""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

S = TypeVar("S")
P = TypeVar("P")

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class PollConfig:
    """Configuration for result polling (50 x 100ms by default)."""
    max_polls: int = 50
    interval_seconds: float = 0.1


class PollStatus(str, enum.Enum):
    COMPLETE = "complete"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class PollResult(Generic[P]):
    """
    Outcome of a poll loop.

    ``payload`` is always set. An empty payload means "no data" when
    ``status`` is COMPLETE and "not finished yet" when it is TIMED_OUT.
    """
    status: PollStatus
    payload: P
    polls: int

    @property
    def complete(self) -> bool:
        return self.status is PollStatus.COMPLETE


class ResultPoller:
    """
    Fetches a job's status until it reports completion or the budget runs out.

    Running out of budget is not an error: the best available payload is
    returned, marked TIMED_OUT.
    """

    def __init__(self, config: PollConfig | None = None, sleep: Sleep = asyncio.sleep):
        self.config = config or PollConfig()
        self._sleep = sleep

    async def poll_until_complete(
        self,
        fetch_status: Callable[[], Awaitable[S]],
        extract: Callable[[S | None], P],
    ) -> PollResult[P]:
        """
        Poll a job.

        Args:
            fetch_status: Fetches the current job status; the status must have
                a boolean ``complete`` attribute
            extract: Builds the payload from a status. Must return an empty
                payload for missing or malformed sub-fields (and for ``None``
                when the budget is zero)

        Returns:
            PollResult with the payload and the number of polls made
        """
        status: S | None = None
        for poll in range(1, self.config.max_polls + 1):
            status = await fetch_status()
            if getattr(status, "complete", False):
                logger.debug(f"Job complete after {poll} polls")
                return PollResult(PollStatus.COMPLETE, extract(status), poll)

            if poll < self.config.max_polls:
                await self._sleep(self.config.interval_seconds)

        logger.warning(
            f"Job not complete after {self.config.max_polls} polls, "
            f"returning partial result"
        )
        return PollResult(PollStatus.TIMED_OUT, extract(status), self.config.max_polls)
