"""Main client class and the authorization gate."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Iterable

from .aggregate import (
    FetchOutcome,
    LoggingProgress,
    ProgressSink,
    aggregate_bounded,
    aggregate_ordered,
)
from .config import ClientConfig
from .decoder import decode, list_of
from .errors import PartialResult
from .models import (
    Authorizations,
    Column,
    Dataset,
    Query,
    QueryResultStatus,
)
from .polling import PollResult, ResultPoller
from .resilience import RetryingExecutor
from .transport import HttpxTransport, Transport

logger = logging.getLogger(__name__)

Row = dict[str, Any]
QuerySpecBuilder = Callable[[str, int], dict[str, Any]]


class QueryIncomplete(PartialResult):
    """A query result was still running when the poll budget ran out.

    ``partial`` holds the rows seen so far.
    """


def exists_query_spec(column_id: str, time_range: int = 604800) -> dict[str, Any]:
    """COUNT of events where the column is set, broken down by its values."""
    return {
        "breakdowns": [column_id],
        "calculations": [{"op": "COUNT"}],
        "filters": [{"column": column_id, "op": "exists"}],
        "time_range": time_range,
    }


def avg_query_spec(column_id: str, time_range: int = 604800) -> dict[str, Any]:
    """AVG of a numeric column."""
    return {
        "calculations": [{"op": "AVG", "column": column_id}],
        "time_range": time_range,
    }


def _age_in_days(now: datetime, then: datetime) -> int:
    return (now - then).days


@dataclass
class HoneycombClient:
    """
    Async client for the Honeycomb API.

    Usage:
        async with HoneycombClient(ClientConfig.load()) as hc:
            slugs = await hc.get_dataset_slugs(last_written=30)
            await hc.process_datasets_columns(30, slugs, print)

    A transport can be injected (tests pass one over ``httpx.MockTransport``);
    otherwise one is built from the config, which must carry an API key.
    """
    config: ClientConfig = field(default_factory=ClientConfig)
    transport: Transport | None = None
    progress: ProgressSink | None = None
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep

    _executor: RetryingExecutor = field(init=False, repr=False)
    _poller: ResultPoller = field(init=False, repr=False)
    _owns_transport: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.transport is None:
            self.transport = HttpxTransport(
                api_key=self.config.require_api_key(),
                api_url=self.config.api_url,
                timeout=self.config.timeout,
            )
            self._owns_transport = True
        self._executor = RetryingExecutor(self.config.retry_config(), sleep=self.sleep)
        self._poller = ResultPoller(self.config.poll_config(), sleep=self.sleep)

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport and isinstance(self.transport, HttpxTransport):
            await self.transport.aclose()

    async def __aenter__(self) -> HoneycombClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # -- Single requests -------------------------------------------------

    async def _get(self, path: str, parse: Callable[[Any], Any]) -> Any:
        response = await self.transport.send("GET", path)
        return decode(response, parse)

    async def _post(self, path: str, body: dict[str, Any], parse: Callable[[Any], Any]) -> Any:
        """POST starts server-side work, so rate-limited responses are retried."""
        return await self._executor.execute(
            lambda: self.transport.send("POST", path, json=body),
            parse,
        )

    async def list_authorizations(self) -> Authorizations:
        return await self._get("auth", Authorizations.from_dict)

    async def list_all_datasets(self) -> list[Dataset]:
        return await self._get("datasets", list_of(Dataset.from_dict))

    async def list_all_columns(self, dataset_slug: str) -> list[Column]:
        return await self._get(f"columns/{dataset_slug}", list_of(Column.from_dict))

    async def create_query(self, dataset_slug: str, query_spec: dict[str, Any]) -> Query:
        return await self._post(f"queries/{dataset_slug}", query_spec, Query.from_dict)

    async def create_query_result(self, dataset_slug: str, query_id: str) -> QueryResultStatus:
        return await self._post(
            f"query_results/{dataset_slug}",
            {
                "query_id": query_id,
                "disable_series": False,
                "limit": self.config.query_result_limit,
            },
            QueryResultStatus.from_dict,
        )

    async def get_query_result(self, dataset_slug: str, result_id: str) -> QueryResultStatus:
        return await self._get(
            f"query_results/{dataset_slug}/{result_id}",
            QueryResultStatus.from_dict,
        )

    # -- Queries ---------------------------------------------------------

    async def get_query_url(self, dataset_slug: str, query_spec: dict[str, Any]) -> str:
        """Create a query and a result for it, returning the result's UI link."""
        query = await self.create_query(dataset_slug, query_spec)
        result = await self.create_query_result(dataset_slug, query.id)
        return result.links.query_url

    async def get_exists_query_url(self, dataset_slug: str, column_id: str) -> str:
        return await self.get_query_url(
            dataset_slug, exists_query_spec(column_id, self.config.query_time_range)
        )

    async def get_avg_query_url(self, dataset_slug: str, column_id: str) -> str:
        return await self.get_query_url(
            dataset_slug, avg_query_spec(column_id, self.config.query_time_range)
        )

    async def run_query(self, dataset_slug: str, query_spec: dict[str, Any]) -> PollResult[list[Row]]:
        """
        Run a query and wait for its rows.

        The result may be TIMED_OUT with whatever rows were available; check
        ``PollResult.complete`` before reading an empty payload as "no data".
        """
        query = await self.create_query(dataset_slug, query_spec)
        started = await self.create_query_result(dataset_slug, query.id)
        if started.complete:
            return await self._poller.poll_until_complete(
                _already(started), QueryResultStatus.rows
            )
        return await self._poller.poll_until_complete(
            lambda: self.get_query_result(dataset_slug, started.id),
            QueryResultStatus.rows,
        )

    # -- Fan-out ---------------------------------------------------------

    async def get_dataset_slugs(
        self,
        last_written: int,
        include_datasets: Iterable[str] | None = None,
        now: datetime | None = None,
    ) -> list[str]:
        """
        Slugs of datasets written to in the last ``last_written`` days, sorted.

        Datasets without a timestamp count as just written. When
        ``include_datasets`` is non-empty only those slugs are kept.
        """
        now = now or datetime.now(timezone.utc)
        include = set(include_datasets or ())

        slugs = [
            d.slug
            for d in await self.list_all_datasets()
            if _age_in_days(now, d.last_written_at or now) < last_written
            and (not include or d.slug in include)
        ]
        return sorted(slugs)

    def _recent_columns(self, last_written: int, now: datetime) -> Callable[[str], Awaitable[list[Column]]]:
        async def fetch(dataset_slug: str) -> list[Column]:
            columns = await self.list_all_columns(dataset_slug)
            return [c for c in columns if _age_in_days(now, c.last_written) < last_written]
        return fetch

    async def process_datasets_columns(
        self,
        last_written: int,
        datasets: list[str],
        consumer: Callable[[str, list[Column]], Any],
        now: datetime | None = None,
    ) -> list[FetchOutcome[str, list[Column]]]:
        """
        Fetch the columns of every dataset in parallel and call ``consumer``
        for each dataset, in the order given.

        Only columns written to in the last ``last_written`` days are passed
        on. A dataset whose columns cannot be fetched gets an empty list.
        """
        now = now or datetime.now(timezone.utc)
        return await aggregate_ordered(datasets, self._recent_columns(last_written, now), consumer)

    async def collect_datasets_columns(
        self,
        last_written: int,
        datasets: Iterable[str],
        now: datetime | None = None,
    ) -> list[FetchOutcome[str, list[Column]]]:
        """Like process_datasets_columns, but capped in concurrency and unordered."""
        now = now or datetime.now(timezone.utc)
        return await aggregate_bounded(
            datasets,
            self._recent_columns(last_written, now),
            concurrency_limit=self.config.concurrency_limit,
            progress=self.progress or LoggingProgress("columns"),
        )

    async def query_columns(
        self,
        dataset_slug: str,
        column_ids: Iterable[str],
        spec_builder: QuerySpecBuilder = exists_query_spec,
    ) -> list[FetchOutcome[str, list[Row]]]:
        """
        Run one query per column with bounded concurrency.

        Each query may itself be rate limited and retried, which is why the
        fan-out is capped. A query still running after the poll budget is
        recorded as a failed outcome with the rows seen so far.
        """
        async def fetch(column_id: str) -> list[Row]:
            result = await self.run_query(
                dataset_slug, spec_builder(column_id, self.config.query_time_range)
            )
            if not result.complete:
                raise QueryIncomplete(
                    f"query on {dataset_slug}.{column_id} not complete "
                    f"after {result.polls} polls ({len(result.payload)} rows so far)",
                    partial=result.payload,
                )
            return result.payload

        return await aggregate_bounded(
            column_ids,
            fetch,
            concurrency_limit=self.config.concurrency_limit,
            progress=self.progress or LoggingProgress(f"queries {dataset_slug}"),
        )


def _already(status: QueryResultStatus) -> Callable[[], Awaitable[QueryResultStatus]]:
    async def fetch_status() -> QueryResultStatus:
        return status
    return fetch_status


async def get_client(
    required_access: list[str] | tuple[str, ...],
    config: ClientConfig | None = None,
    transport: Transport | None = None,
) -> HoneycombClient | None:
    """
    Build a client and check the API key grants ``required_access``.

    Returns None (after logging what the key can do) when access is missing.

    Raises:
        ConfigError: If no API key is configured and no transport is given
    """
    client = HoneycombClient(config=config or ClientConfig(), transport=transport)
    try:
        auth = await client.list_authorizations()
    except Exception:
        await client.aclose()
        raise

    if auth.has_required_access(required_access):
        return client

    logger.error(f"honeycomb: missing required access {list(required_access)}:\n{auth}")
    await client.aclose()
    return None
