"""Exceptions raised by the honeycomb client."""

from __future__ import annotations

from typing import Any, Mapping


class HoneycombError(Exception):
    """Base exception for honeycomb client errors."""
    pass


class ConfigError(HoneycombError):
    """Required configuration is missing."""
    pass


class TransportError(HoneycombError):
    """The request never produced an HTTP response."""
    pass


class DecodeError(HoneycombError):
    """
    Response body could not be decoded into the expected type.

    Keeps the raw response so schema drift can be diagnosed.
    """
    def __init__(
        self,
        message: str,
        status_code: int,
        headers: Mapping[str, str],
        body: str,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.headers = dict(headers)
        self.body = body


class TooManyRetries(HoneycombError):
    """The server kept rate limiting until the retry budget ran out."""
    def __init__(self, message: str, attempts: int, status_code: int | None = None):
        super().__init__(message)
        self.attempts = attempts
        self.status_code = status_code


class PartialResult(HoneycombError):
    """
    An operation stopped early but has a usable partial value.

    Aggregation records ``partial`` as the item's value instead of the
    empty placeholder.
    """
    def __init__(self, message: str, partial: Any):
        super().__init__(message)
        self.partial = partial
