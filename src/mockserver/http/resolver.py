"""
=============================================================================
RESPONSE RESOLVER
=============================================================================

Given a parsed Request and the route table, decide what to send back.

=============================================================================
RESOLUTION PIPELINE
=============================================================================

        Request
           │
           ▼
    ┌──────────────────┐   no entry with path == uri
    │ 1. MATCH PATH    │ ─────────────────────────────► 404 "Path not found"
    └────────┬─────────┘
             ▼
    ┌──────────────────┐   method token not recognized
    │ 2. METHOD TOKEN  │ ─────────────────────────────► 400 "Bad Request"
    └────────┬─────────┘
             ▼
    ┌──────────────────┐   entry.method != request.method
    │ 3. METHOD CHECK  │ ─────────────────────────────► 405 "Method Not Allowed"
    └────────┬─────────┘
             ▼
    ┌──────────────────┐   required header / query absent
    │ 4. PRECONDITIONS │ ─────────────────────────────► PRECONDITION_FAILED
    └────────┬─────────┘
             ▼
    ┌──────────────────┐   file missing, unreadable, bad header spec
    │ 5. STATUS + BODY │ ─────────────────────────────► BODY_SOURCE_ERROR
    │ 6. HEADERS       │
    └────────┬─────────┘
             ▼
          MATCHED

=============================================================================
TWO WAYS TO CALL IT
=============================================================================

ResponseResolver.resolve() never raises for request or config problems. It
returns a Resolution tagged with an Outcome, and always carries a response
the server can send (400/500 for the failure outcomes).

The module-level resolve() keeps the classic contract instead: the fixed
404/405/400 answers are returned, every other failure is raised so the
caller can abort the connection.

=============================================================================
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from ..errors import (
    ConfigFileOpenError,
    ConfigParsingError,
    ConfigRequiredHeadersError,
    ConfigRequiredQueriesError,
    MockServerError,
    ParsingError,
    PreconditionError,
)
from .helpers import split_key_value
from .mime_types import mime_type_for_path
from .request import Request
from .response import Response
from .routes import ResultType, RouteEntry, RouteTable
from .status_codes import HTTPStatus

logger = logging.getLogger(__name__)


NOT_FOUND_BODY = "Path not found"
METHOD_NOT_ALLOWED_BODY = "Method Not Allowed"
BAD_METHOD_BODY = "Bad Request"


class Outcome(Enum):
    """How a request was resolved."""

    MATCHED = "matched"
    NO_ROUTE = "no_route"
    METHOD_MISMATCH = "method_mismatch"
    BAD_METHOD = "bad_method"
    PRECONDITION_FAILED = "precondition_failed"
    BODY_SOURCE_ERROR = "body_source_error"


@dataclass
class Resolution:
    """
    Result of resolving one request.

    Attributes:
        outcome:  Which branch of the pipeline produced the response
        response: Always a sendable response, even for failures
        error:    The exception behind a failure outcome, else None
        entry:    The matched route entry, if any
    """

    outcome: Outcome
    response: Response
    error: Optional[Exception] = None
    entry: Optional[RouteEntry] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Response:
        """Return the response, or raise the error behind a failure."""
        if self.error is not None:
            raise self.error
        return self.response


class ResponseResolver:
    """
    Resolves requests against a fixed route table.

    The resolver holds nothing but a reference to the immutable table, so a
    single instance is shared by every worker thread.

    Usage:
        resolver = ResponseResolver(route_table)
        resolution = resolver.resolve(request)
        conn.send(resolution.response.to_bytes())
    """

    def __init__(self, route_table: RouteTable):
        self.route_table = route_table

    def resolve(self, request: Request) -> Resolution:
        # ---------------------------------------------------------------------
        # 1. Match: first entry with the exact path wins
        # ---------------------------------------------------------------------
        entry = self.route_table.match(request.uri)
        if entry is None:
            return Resolution(
                Outcome.NO_ROUTE,
                Response.text(HTTPStatus.NOT_FOUND, NOT_FOUND_BODY),
            )

        # ---------------------------------------------------------------------
        # 2-3. Method: unknown tokens are rejected, mismatches short-circuit
        #      before any precondition is looked at
        # ---------------------------------------------------------------------
        if not request.is_method_recognized:
            logger.debug(f"Unrecognized method {request.method.token!r} for {request.uri}")
            return Resolution(
                Outcome.BAD_METHOD,
                Response.text(HTTPStatus.BAD_REQUEST, BAD_METHOD_BODY),
                entry=entry,
            )

        if request.method != entry.method:
            return Resolution(
                Outcome.METHOD_MISMATCH,
                Response.text(HTTPStatus.METHOD_NOT_ALLOWED, METHOD_NOT_ALLOWED_BODY),
                entry=entry,
            )

        # ---------------------------------------------------------------------
        # 4. Preconditions
        # ---------------------------------------------------------------------
        try:
            check_preconditions(entry, request)
        except PreconditionError as e:
            return Resolution(
                Outcome.PRECONDITION_FAILED,
                Response.text(HTTPStatus.BAD_REQUEST, str(e)),
                error=e,
                entry=entry,
            )

        # ---------------------------------------------------------------------
        # 5-6. Status, body and headers
        # ---------------------------------------------------------------------
        try:
            response = build_response(entry, request)
        except (MockServerError, OSError) as e:
            logger.error(f"Route {entry.path}: cannot build response: {e}")
            return Resolution(
                Outcome.BODY_SOURCE_ERROR,
                Response.text(HTTPStatus.INTERNAL_SERVER_ERROR, HTTPStatus.INTERNAL_SERVER_ERROR.phrase),
                error=e,
                entry=entry,
            )

        return Resolution(Outcome.MATCHED, response, entry=entry)


def resolve(request: Request, route_table: RouteTable) -> Response:
    """
    Resolve a request, raising on anything that is not an HTTP answer.

    Returns:
        The response for MATCHED, NO_ROUTE, METHOD_MISMATCH and BAD_METHOD.

    Raises:
        ConfigRequiredHeadersError, ConfigRequiredQueriesError:
            A required header or query parameter is absent.
        ConfigFileOpenError: A file/dl body path is not a readable file.
        ConfigParsingError: A result_headers entry has no ":".
        OSError: Reading the body file failed.
    """
    return ResponseResolver(route_table).resolve(request).unwrap()


# =============================================================================
# PIPELINE STEPS
# =============================================================================

def check_preconditions(entry: RouteEntry, request: Request) -> None:
    """
    Verify the request carries every header and query the route requires.

    Header names are matched case-sensitively, exactly as received.
    """
    if entry.headers:
        missing = sorted(name for name in entry.headers if name not in request.headers)
        if missing:
            raise ConfigRequiredHeadersError(f"required headers missing: {', '.join(missing)}")

    if entry.queries:
        missing = sorted(name for name in entry.queries if name not in request.query_strings)
        if missing:
            raise ConfigRequiredQueriesError(f"required query strings missing: {', '.join(missing)}")


def build_response(entry: RouteEntry, request: Request) -> Response:
    """
    Materialize the response of a matched route.

    Header precedence, lowest to highest:

        dl headers  <  Content-Length  <  Host  <  result_headers

    so anything declared in the route config wins.
    """
    if entry.status_code is not None:
        status = HTTPStatus.from_code(entry.status_code)
    else:
        status = HTTPStatus.ok()

    headers: Dict[str, str] = {}
    body = load_body(entry, headers)

    headers["Content-Length"] = str(len(body))

    host = request.headers.get("Host")
    if host is not None:
        headers["Host"] = host

    if entry.result_headers:
        for spec in entry.result_headers:
            try:
                name, value = split_key_value(spec, ":")
            except ParsingError as e:
                raise ConfigParsingError(f"invalid result header {spec!r}") from e
            headers[name] = value

    return Response(status=status, headers=headers, body=body)


def load_body(entry: RouteEntry, headers: Dict[str, str]) -> bytes:
    """
    Read the body bytes for a route, adding download headers for "dl".

    Unknown result types produce an empty body.
    """
    if entry.result_type == ResultType.DIRECT:
        return entry.result.encode("utf-8")

    if entry.result_type == ResultType.FILE:
        path = _body_file(entry)
        data = path.read_bytes()
        try:
            data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ConfigFileOpenError(f"{path} is not valid UTF-8 text") from e
        return data

    if entry.result_type == ResultType.DL:
        path = _body_file(entry)
        headers["Content-Type"] = mime_type_for_path(path)
        headers["Accept-Ranges"] = "None"
        headers["Content-Disposition"] = f"attachment; filename={path.name}"
        return path.read_bytes()

    return b""


def _body_file(entry: RouteEntry) -> Path:
    path = Path(entry.result)
    if not path.is_file():
        raise ConfigFileOpenError(f"route {entry.path}: {entry.result} is not a file")
    return path
