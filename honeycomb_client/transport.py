"""HTTP transport: one request in, status/headers/body out."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol

import httpx

from .errors import TransportError

logger = logging.getLogger(__name__)

TEAM_HEADER = "X-Honeycomb-Team"


@dataclass(frozen=True)
class TransportResponse:
    """Raw response. Status codes are never raised, 429 included."""
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    text: str = ""


class Transport(Protocol):
    async def send(
        self,
        method: str,
        path: str,
        headers: Mapping[str, str] | None = None,
        json: Any = None,
    ) -> TransportResponse:
        ...


class HttpxTransport:
    """
    Transport backed by a single shared ``httpx.AsyncClient``.

    The only state is the connection pool and the read-only team key, so
    one instance is handed to every concurrent fetch.

    Usage:
        async with HttpxTransport(api_key="...") as transport:
            response = await transport.send("GET", "datasets")
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str = "https://api.honeycomb.io/1/",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        if client is None:
            headers = {TEAM_HEADER: api_key} if api_key else {}
            client = httpx.AsyncClient(base_url=api_url, timeout=timeout, headers=headers)
        self._client = client

    async def send(
        self,
        method: str,
        path: str,
        headers: Mapping[str, str] | None = None,
        json: Any = None,
    ) -> TransportResponse:
        logger.debug(f"{method} {path}")
        try:
            response = await self._client.request(
                method,
                path,
                headers=dict(headers) if headers else None,
                json=json,
            )
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        return TransportResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            text=response.text,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpxTransport:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
