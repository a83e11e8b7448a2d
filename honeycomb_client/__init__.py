"""Async client for the Honeycomb API with rate-limit aware fan-out."""

from .aggregate import (
    FetchOutcome,
    LoggingProgress,
    NullProgress,
    ProgressSink,
    aggregate_bounded,
    aggregate_ordered,
)
from .client import (
    HoneycombClient,
    QueryIncomplete,
    avg_query_spec,
    exists_query_spec,
    get_client,
)
from .config import ClientConfig
from .errors import (
    ConfigError,
    DecodeError,
    HoneycombError,
    PartialResult,
    TooManyRetries,
    TransportError,
)
from .models import Authorizations, Column, Dataset, QueryResultStatus
from .polling import PollConfig, PollResult, PollStatus, ResultPoller
from .resilience import RetryConfig, RetryingExecutor
from .transport import HttpxTransport, Transport, TransportResponse

__version__ = "0.1.0"

__all__ = [
    "Authorizations",
    "ClientConfig",
    "Column",
    "ConfigError",
    "Dataset",
    "DecodeError",
    "FetchOutcome",
    "HoneycombClient",
    "HoneycombError",
    "HttpxTransport",
    "LoggingProgress",
    "NullProgress",
    "PartialResult",
    "PollConfig",
    "PollResult",
    "PollStatus",
    "ProgressSink",
    "QueryIncomplete",
    "QueryResultStatus",
    "ResultPoller",
    "RetryConfig",
    "RetryingExecutor",
    "TooManyRetries",
    "Transport",
    "TransportError",
    "TransportResponse",
    "aggregate_bounded",
    "aggregate_ordered",
    "avg_query_spec",
    "exists_query_spec",
    "get_client",
]
