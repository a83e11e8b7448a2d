"""Concurrent fan-out over work items: ordered delivery and bounded concurrency."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import (
    Any,
    Awaitable,
    Callable,
    Generic,
    Hashable,
    Iterable,
    Protocol,
    Sequence,
    TypeVar,
)

from .errors import PartialResult

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")

Fetch = Callable[[K], Awaitable[T]]


@dataclass(frozen=True)
class FetchOutcome(Generic[K, T]):
    """
    Result of fetching one work item.

    ``value`` is always usable: on failure it holds the empty placeholder
    and ``error`` carries the diagnostic message.
    """
    item: K
    value: T
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, item: K, value: T) -> FetchOutcome[K, T]:
        return cls(item=item, value=value)

    @classmethod
    def failure(cls, item: K, message: str, empty: T) -> FetchOutcome[K, T]:
        return cls(item=item, value=empty, error=message)


class ProgressSink(Protocol):
    def report(self, completed: int, total: int) -> None:
        ...


class NullProgress:
    """Discards progress reports."""

    def report(self, completed: int, total: int) -> None:
        pass


class LoggingProgress:
    """Reports progress as ``label: completed/total`` log lines."""

    def __init__(self, label: str = "progress", log: logging.Logger | None = None):
        self.label = label
        self._log = log or logger

    def report(self, completed: int, total: int) -> None:
        self._log.info(f"{self.label}: {completed}/{total}")


def _outcome(item: K, task: asyncio.Future, empty: Callable[[], T]) -> FetchOutcome[K, T]:
    """Turn a finished task into an outcome, logging failures."""
    if task.cancelled():
        logger.warning(f"fetch of {item} was cancelled")
        return FetchOutcome.failure(item, "CancelledError: fetch cancelled", empty())

    error = task.exception()
    if error is None:
        return FetchOutcome.success(item, task.result())
    logger.warning(f"error fetching {item}: {error}")
    value = error.partial if isinstance(error, PartialResult) else empty()
    return FetchOutcome.failure(item, f"{type(error).__name__}: {error}", value)


def _report(progress: ProgressSink, completed: int, total: int) -> None:
    try:
        progress.report(completed, total)
    except Exception as e:
        logger.warning(f"Progress report failed: {e}")


async def aggregate_ordered(
    items: Sequence[K],
    fetch: Fetch[K, T],
    consumer: Callable[[K, T], Any] | None = None,
    empty: Callable[[], T] = list,
) -> list[FetchOutcome[K, T]]:
    """
    Fetch every item concurrently and deliver results in input order.

    All fetches start at once. Item i is handed to ``consumer`` only after
    items 0..i-1 were, however the fetches finish. A failed fetch is logged
    and ``empty()`` is delivered in its place.

    Args:
        items: Work items, in the order results must be delivered
        fetch: Coroutine function fetching one item
        consumer: Called with (item, value) for each item, in order
        empty: Factory for the placeholder delivered on failure

    Returns:
        One FetchOutcome per item, in input order
    """
    tasks = [asyncio.ensure_future(fetch(item)) for item in items]
    outcomes: list[FetchOutcome[K, T]] = []
    try:
        for item, task in zip(items, tasks):
            # Wait without raising; failures are recorded per item.
            await asyncio.wait([task])
            outcome = _outcome(item, task, empty)
            outcomes.append(outcome)
            if consumer is not None:
                consumer(item, outcome.value)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
    return outcomes


async def aggregate_bounded(
    items: Iterable[K],
    fetch: Fetch[K, T],
    concurrency_limit: int = 3,
    progress: ProgressSink | None = None,
    empty: Callable[[], T] = list,
) -> list[FetchOutcome[K, T]]:
    """
    Fetch every distinct item with at most ``concurrency_limit`` in flight.

    As each fetch finishes the next queued item starts. Progress is reported
    after every completion. Only this coroutine touches the result list and
    the counter.

    Args:
        items: Work items; duplicates are fetched once
        fetch: Coroutine function fetching one item
        concurrency_limit: Maximum number of fetches in flight
        progress: Receives (completed, total) after each completion
        empty: Factory for the placeholder recorded on failure

    Returns:
        One FetchOutcome per distinct item, in completion order

    Raises:
        ValueError: If concurrency_limit is less than 1
    """
    if concurrency_limit < 1:
        raise ValueError("concurrency_limit must be >= 1")

    unique = list(dict.fromkeys(items))
    total = len(unique)
    progress = progress or NullProgress()
    queue = iter(unique)
    pending: dict[asyncio.Future, K] = {}
    outcomes: list[FetchOutcome[K, T]] = []

    def start_next() -> None:
        for item in queue:
            pending[asyncio.ensure_future(fetch(item))] = item
            return

    for _ in range(min(concurrency_limit, total)):
        start_next()

    try:
        while pending:
            done, _ = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                item = pending.pop(task)
                outcomes.append(_outcome(item, task, empty))
                _report(progress, len(outcomes), total)
                start_next()
    finally:
        for task in pending:
            task.cancel()

    return outcomes
