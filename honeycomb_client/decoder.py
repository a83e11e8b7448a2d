"""JSON response decoding into typed results."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, TypeVar

from .errors import DecodeError
from .transport import TransportResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")


def list_of(parse: Callable[[Any], T]) -> Callable[[Any], list[T]]:
    """Build a parser for a JSON array whose elements are parsed by ``parse``."""
    def _parse_list(data: Any) -> list[T]:
        if not isinstance(data, list):
            raise TypeError(f"expected a JSON array, got {type(data).__name__}")
        return [parse(item) for item in data]
    return _parse_list


def decode(response: TransportResponse, parse: Callable[[Any], T]) -> T:
    """
    Decode a response body with ``parse``.

    Args:
        response: Raw transport response
        parse: Callable turning the loaded JSON value into the target type

    Returns:
        The parsed value

    Raises:
        DecodeError: If the body is not JSON or does not have the expected shape
    """
    try:
        return parse(json.loads(response.text))
    except (ValueError, KeyError, TypeError) as e:
        logger.warning(f"Invalid JSON data (HTTP {response.status_code}): {response.text}")
        raise DecodeError(
            f"Failed to parse JSON data: {e}",
            status_code=response.status_code,
            headers=response.headers,
            body=response.text,
        ) from e
