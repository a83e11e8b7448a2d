"""Typed results returned by the Honeycomb API."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


_FRACTION = re.compile(r"\.(\d+)")


def parse_timestamp(value: str | None) -> datetime | None:
    """
    Parse an RFC 3339 timestamp (``Z`` suffix allowed) into an aware datetime.

    Fractional seconds of any precision are accepted; beyond microseconds
    they are truncated.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"timestamp must be a string, got {type(value).__name__}")
    if value.endswith("Z") or value.endswith("z"):
        value = value[:-1] + "+00:00"
    # fromisoformat on 3.10 only takes 3 or 6 fraction digits
    value = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Dataset:
    slug: str
    name: str | None = None
    last_written_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Dataset:
        return cls(
            slug=data["slug"],
            name=data.get("name"),
            last_written_at=parse_timestamp(data.get("last_written_at")),
        )


@dataclass
class Column:
    """A column of a dataset."""
    id: str
    key_name: str
    type: str
    description: str
    hidden: bool
    last_written: datetime

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Column:
        last_written = parse_timestamp(data["last_written"])
        if last_written is None:
            raise TypeError("column last_written is null")
        return cls(
            id=data["id"],
            key_name=data["key_name"],
            type=data["type"],
            description=data["description"],
            hidden=data["hidden"],
            last_written=last_written,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "key_name": self.key_name,
            "type": self.type,
            "description": self.description,
            "hidden": self.hidden,
            "last_written": self.last_written.isoformat(),
        }


@dataclass
class NameAndSlug:
    name: str
    slug: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NameAndSlug:
        return cls(name=data["name"], slug=data["slug"])


@dataclass
class Authorizations:
    """What the configured API key is allowed to do, and where."""
    api_key_access: dict[str, bool]
    environment: NameAndSlug
    team: NameAndSlug

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Authorizations:
        return cls(
            api_key_access=dict(data["api_key_access"]),
            environment=NameAndSlug.from_dict(data["environment"]),
            team=NameAndSlug.from_dict(data["team"]),
        )

    def has_required_access(self, access_types: list[str] | tuple[str, ...]) -> bool:
        """True if every access type is granted; unknown types count as denied."""
        return all(self.api_key_access.get(access_type, False) for access_type in access_types)

    def __str__(self) -> str:
        access = "".join(f"{key}: {value}\n" for key, value in self.api_key_access.items())
        return (
            f"api_key_access:\n{access}\n"
            f"environment: {self.environment.name}\n"
            f"team: {self.team.name}"
        )


@dataclass
class Query:
    id: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Query:
        return cls(id=data["id"])


@dataclass
class QueryResultLinks:
    query_url: str = ""
    graph_image_url: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> QueryResultLinks:
        if not isinstance(data, dict):
            return cls()
        return cls(
            query_url=data.get("query_url") or "",
            graph_image_url=data.get("graph_image_url"),
        )


@dataclass
class QueryResultData:
    """
    Rows of a query result.

    Tolerant by construction: the server may answer before the result is
    complete, so missing or malformed parts become empty.
    """
    series: list[dict[str, Any]] = field(default_factory=list)
    results: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> QueryResultData:
        if not isinstance(data, dict):
            return cls()
        series = data.get("series")
        results = data.get("results")
        return cls(
            series=[s for s in series if isinstance(s, dict)] if isinstance(series, list) else [],
            results=[
                r["data"] for r in results
                if isinstance(r, dict) and isinstance(r.get("data"), dict)
            ] if isinstance(results, list) else [],
        )


@dataclass
class QueryResultStatus:
    """State of an asynchronous query result."""
    id: str
    complete: bool = False
    links: QueryResultLinks = field(default_factory=QueryResultLinks)
    data: QueryResultData = field(default_factory=QueryResultData)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QueryResultStatus:
        return cls(
            id=data["id"],
            complete=bool(data.get("complete", False)),
            links=QueryResultLinks.from_dict(data.get("links")),
            data=QueryResultData.from_dict(data.get("data")),
        )

    @staticmethod
    def rows(status: QueryResultStatus | None) -> list[dict[str, Any]]:
        """Result rows of a status, empty when there is none."""
        if status is None:
            return []
        return list(status.data.results)
