"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw byte stream of a client connection into a structured Request.

=============================================================================
WHAT THE MOCK SERVER READS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     REQUEST AS SEEN ON THE WIRE                     │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    GET /api/users?page=1&limit=10 HTTP/1.1\r\n    ← request line    │
    │    ─┬─ ───┬────── ───────┬──────── ────┬───                         │
    │     │     │              │             │                             │
    │  method  uri       query_strings    version                          │
    │                                                                      │
    │    Host: localhost:8080\r\n                       ← header lines    │
    │    X-Token: abc\r\n                                                  │
    │    \r\n                                           ← end of request  │
    │                                                                      │
    │    (anything after the blank line is NEVER read)                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PARSER STATE MACHINE
=============================================================================

The parser walks the stream line by line and never backtracks:

        ┌──────────────────┐  non-empty line   ┌──────────────────┐
        │  REQUEST LINE    │ ────────────────► │     HEADERS      │ ◄─┐
        └──────────────────┘                   └────────┬─────────┘   │
              ▲      │ empty line                       │ "K: V"      │
              └──────┘ (skipped)                        └─────────────┘
                                                        │ empty line
                                                        ▼
                                                     Request

Lenient on purpose where a mock can afford it:
    - Missing request-line tokens become "" (the resolver answers 404)
    - Unknown method tokens are kept as UnrecognizedMethod (answered 400)

Strict where it protects the server:
    - Invalid UTF-8 in any line           → ParsingError
    - Header line without ":"             → ParsingError
    - Line longer than max_line_length    → ParsingError
    - More than max_headers header lines  → ParsingError

=============================================================================
"""

import io
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Protocol, Union

from ..errors import ConfigParsingError, ConnectionClosedError, ParsingError
from .helpers import split_key_value


class LineSource(Protocol):
    """Anything that can hand out bytes one line at a time."""

    def readline(self, limit: int = -1) -> bytes:
        ...


@dataclass(frozen=True)
class UnrecognizedMethod:
    """
    A method token that is not one of the supported Method values.

    Keeping the raw token lets the resolver decide how to answer
    instead of silently treating the request as a GET.
    """

    token: str

    def __str__(self) -> str:
        return self.token


class Method(Enum):
    """HTTP methods a route can be bound to."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    OPTION = "OPTION"
    DELETE = "DELETE"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, token: str) -> Union["Method", UnrecognizedMethod]:
        """
        Parse a method token from a request line.

        Returns:
            The matching Method, or UnrecognizedMethod carrying the token.
        """
        try:
            return cls(token)
        except ValueError:
            return UnrecognizedMethod(token)

    @classmethod
    def from_config(cls, token: str) -> "Method":
        """
        Parse a method name from the route configuration.

        Names must match exactly ("GET", not "get").

        Raises:
            ConfigParsingError: If the name is not a supported method.
        """
        try:
            return cls(str(token))
        except ValueError:
            raise ConfigParsingError(f"unknown method in route config: {token!r}") from None


@dataclass(frozen=True)
class Request:
    """
    A parsed HTTP request.

    Attributes:
        method:         Method, or UnrecognizedMethod for unknown tokens
        uri:            Path only, never contains "?..."
        version:        Protocol version token ("HTTP/1.1"), may be ""
        headers:        Header name → value, names kept AS RECEIVED
                        (case-sensitive), last occurrence wins
        query_strings:  Query name → value, last occurrence wins
        client_address: (ip, port) of the peer, for logging
    """

    method: Union[Method, UnrecognizedMethod]
    uri: str
    version: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    query_strings: Dict[str, str] = field(default_factory=dict)
    client_address: tuple[str, int] = ("", 0)

    @property
    def is_method_recognized(self) -> bool:
        return isinstance(self.method, Method)

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get a header by its exact (case-sensitive) name."""
        return self.headers.get(name, default)

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get a query parameter by its exact name."""
        return self.query_strings.get(name, default)


class RequestParser:
    """
    Reads one HTTP request from a line source.

    The source is anything with a readline(limit) method returning bytes:
    a Connection in the server, io.BytesIO in tests. Lines end at LF and
    the trailing CRLF is stripped.

    Both limits exist so that a slow or hostile peer cannot make a single
    connection buffer unbounded data:

        max_line_length: Longest accepted line, in bytes, without CRLF.
        max_headers:     Most header lines (and skipped blank lines
                         before the request line) accepted.
    """

    def __init__(self, max_line_length: int = 8192, max_headers: int = 100):
        self.max_line_length = max_line_length
        self.max_headers = max_headers

    def parse(
        self,
        source: LineSource,
        client_address: tuple[str, int] = ("", 0),
    ) -> Optional[Request]:
        """
        Parse a request from the source.

        Returns:
            The parsed Request, or None if the peer closed the connection
            before sending a request line.

        Raises:
            ParsingError: Malformed request data or a limit was exceeded.
            ConnectionClosedError: The peer closed mid-request.
            OSError: Any socket error, including timeouts, propagates.
        """
        request_line = self._read_request_line(source)
        if request_line is None:
            return None

        method_token, target, version = self._split_request_line(request_line)
        uri, query_strings = self._parse_target(target)
        headers = self._read_headers(source)

        return Request(
            method=Method.parse(method_token),
            uri=uri,
            version=version,
            headers=headers,
            query_strings=query_strings,
            client_address=client_address,
        )

    # =========================================================================
    # REQUEST LINE
    # =========================================================================

    def _read_request_line(self, source: LineSource) -> Optional[str]:
        skipped = 0
        while True:
            line = self._read_line(source, eof_ok=True)
            if line is None:
                return None
            if line:
                return self._decode(line)

            # Blank lines before the request line are ignored, within limits
            skipped += 1
            if skipped > self.max_headers:
                raise ParsingError("too many blank lines before request line")

    def _split_request_line(self, line: str) -> tuple[str, str, str]:
        # METHOD SP REQUEST-TARGET SP VERSION, missing parts become ""
        tokens = line.split(" ")
        tokens += [""] * (3 - len(tokens))
        return tokens[0], tokens[1], tokens[2]

    def _parse_target(self, target: str) -> tuple[str, Dict[str, str]]:
        """
        Split a request-target into the path and its query parameters.

            "/items?id=7&sort=asc"  →  ("/items", {"id": "7", "sort": "asc"})
            "/items"                →  ("/items", {})
            "/items?"               →  ParsingError (empty segment)
        """
        uri, sep, query = target.partition("?")

        query_strings: Dict[str, str] = {}
        if sep:
            for segment in query.split("&"):
                key, value = split_key_value(segment, "=")
                query_strings[key] = value

        return uri, query_strings

    # =========================================================================
    # HEADERS
    # =========================================================================

    def _read_headers(self, source: LineSource) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        count = 0

        while True:
            line = self._read_line(source)
            if not line:
                return headers  # bare CRLF: end of the header block

            count += 1
            if count > self.max_headers:
                raise ParsingError(f"too many header lines (max {self.max_headers})")

            name, value = split_key_value(self._decode(line), ":")
            headers[name] = value

    # =========================================================================
    # LINE READING
    # =========================================================================

    def _read_line(self, source: LineSource, eof_ok: bool = False) -> Optional[bytes]:
        """
        Read one line and strip its terminator.

        Room for the CRLF is added to the limit so that a line of exactly
        max_line_length bytes is still accepted.
        """
        limit = self.max_line_length + 2
        raw = source.readline(limit)

        if not raw:
            if eof_ok:
                return None
            raise ConnectionClosedError("connection closed before end of headers")

        if not raw.endswith(b"\n"):
            if len(raw) >= limit:
                raise ParsingError(f"line exceeds {self.max_line_length} bytes")
            raise ConnectionClosedError("connection closed in the middle of a line")

        line = raw[:-2] if raw.endswith(b"\r\n") else raw[:-1]
        if len(line) > self.max_line_length:
            raise ParsingError(f"line exceeds {self.max_line_length} bytes")
        return line

    @staticmethod
    def _decode(line: bytes) -> str:
        try:
            return line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParsingError(f"invalid UTF-8 in request: {e}") from e


# =============================================================================
# CONVENIENCE FUNCTION
# =============================================================================

def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
    max_line_length: int = 8192,
    max_headers: int = 100,
) -> Request:
    """
    Parse a complete request held in memory.

    Raises:
        ParsingError: If the data is malformed or holds no request at all.
        ConnectionClosedError: If the data ends before the blank line.
    """
    parser = RequestParser(max_line_length=max_line_length, max_headers=max_headers)
    request = parser.parse(io.BytesIO(data), client_address)
    if request is None:
        raise ParsingError("empty request")
    return request
