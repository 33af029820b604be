"""
=============================================================================
ROUTE TABLE
=============================================================================

The mock server is configured, not programmed: every route is a record in a
JSON file describing what to send back.

    {
        "path": "/dl",
        "method": "GET",
        "headers": ["Authorization"],          ← required request headers
        "queries": ["id"],                     ← required query params
        "status_code": 200,
        "result_type": "dl",                   ← direct | file | dl
        "result": "./files/report.pdf",        ← body text or file path
        "result_headers": ["X-Mock: yes"]      ← extra response headers
    }

=============================================================================
SHARING
=============================================================================

The table is loaded once at startup and never changes afterwards. Entries
are frozen dataclasses and the table holds them in a tuple, so every worker
thread can read the same RouteTable object without any locking.

=============================================================================
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, Optional

from ..errors import ConfigParsingError
from .request import Method

logger = logging.getLogger(__name__)


class ResultType(str, Enum):
    """Where a route's body comes from."""

    DIRECT = "direct"   # body is the "result" text itself
    FILE = "file"       # body is the text content of the file at "result"
    DL = "dl"           # body is the raw bytes of "result", sent as a download


@dataclass(frozen=True)
class RouteEntry:
    """
    One configured route.

    result_type is kept as a plain string: an unknown tag is not a load
    error, the resolver answers it with an empty body.
    """

    path: str
    method: Method
    result_type: str
    result: str = ""
    headers: Optional[frozenset[str]] = None
    queries: Optional[frozenset[str]] = None
    status_code: Optional[int] = None
    result_headers: Optional[tuple[str, ...]] = None

    @classmethod
    def from_dict(cls, data: Any) -> "RouteEntry":
        """
        Build a route entry from one decoded JSON object.

        Raises:
            ConfigParsingError: If the object does not have the route shape.
        """
        if not isinstance(data, dict):
            raise ConfigParsingError(f"route must be an object, got {type(data).__name__}")

        for key in ("path", "method", "result_type"):
            if key not in data:
                raise ConfigParsingError(f"route is missing required field {key!r}")

        path = _expect_str(data, "path")
        result_type = _expect_str(data, "result_type")
        if result_type not in {t.value for t in ResultType}:
            logger.warning(f"Route {path}: unknown result_type {result_type!r}, body will be empty")

        status_code = data.get("status_code")
        if status_code is not None and (isinstance(status_code, bool) or not isinstance(status_code, int)):
            raise ConfigParsingError(f"route {path}: status_code must be an integer")

        return cls(
            path=path,
            method=Method.from_config(data["method"]),
            result_type=result_type,
            result=_expect_str(data, "result", default=""),
            headers=_optional_names(data, "headers", frozenset),
            queries=_optional_names(data, "queries", frozenset),
            status_code=status_code,
            result_headers=_optional_names(data, "result_headers", tuple),
        )


class RouteTable:
    """
    Immutable, ordered collection of route entries.

    Matching is a linear scan in file order and the FIRST entry whose path
    equals the request path wins, even when a later entry would fit the
    method or preconditions better.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[RouteEntry] = ()):
        object.__setattr__(self, "_entries", tuple(entries))

    def __setattr__(self, name, value):
        raise AttributeError("RouteTable is immutable")

    @classmethod
    def from_list(cls, items: Iterable[Any]) -> "RouteTable":
        """Build a table from decoded JSON route objects."""
        return cls(RouteEntry.from_dict(item) for item in items)

    @property
    def entries(self) -> tuple[RouteEntry, ...]:
        return self._entries

    def match(self, path: str) -> Optional[RouteEntry]:
        """Return the first entry whose path equals `path`, or None."""
        for entry in self._entries:
            if entry.path == path:
                return entry
        return None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RouteEntry]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"RouteTable({len(self._entries)} routes)"


def _expect_str(data: dict, key: str, default: Optional[str] = None) -> str:
    value = data.get(key, default)
    if not isinstance(value, str):
        raise ConfigParsingError(f"route field {key!r} must be a string")
    return value


def _optional_names(data: dict, key: str, container):
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigParsingError(f"route field {key!r} must be a list of strings")
    return container(value)
