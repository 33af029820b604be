"""
=============================================================================
HTTP STATUS REGISTRY
=============================================================================

The mock server only ever answers with a small, closed set of status codes.
Route entries pick one of them through their "status_code" field:

    ┌────────┬──────────────────────────────────────────────────────────┐
    │  2xx   │ 200 OK                 201 Created                      │
    ├────────┼──────────────────────────────────────────────────────────┤
    │  4xx   │ 400 Bad Request        401 Unauthorized                 │
    │        │ 402 Payment Required   403 Forbidden                    │
    │        │ 404 Not Found          405 Method Not Allowed           │
    │        │ 406 Not Acceptable     422 Unprocessable Entity         │
    ├────────┼──────────────────────────────────────────────────────────┤
    │  5xx   │ 500 Internal Server Error                               │
    └────────┴──────────────────────────────────────────────────────────┘

Any other code configured on a route resolves to 200 OK. That fallback is
deliberate: a typo in the route file never prevents the mock from answering.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    Status codes the mock server can send, with their reason phrases.

    Being an IntEnum, members compare equal to plain integers:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
        >>> HTTPStatus.from_code(999)
        <HTTPStatus.OK: 200>
    """

    OK = 200
    CREATED = 201

    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    PAYMENT_REQUIRED = 402
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    NOT_ACCEPTABLE = 406
    UNPROCESSABLE_ENTITY = 422

    INTERNAL_SERVER_ERROR = 500

    @property
    def phrase(self) -> str:
        """
        Reason phrase used in the status line.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      └── phrase
                      └───────── code
        """
        return _STATUS_PHRASES[self]

    @property
    def code(self) -> int:
        return int(self)

    @property
    def message(self) -> str:
        return self.phrase

    @classmethod
    def from_code(cls, code: int) -> "HTTPStatus":
        """
        Look up a status by its numeric code.

        Unknown codes fall back to 200 OK instead of raising.
        """
        try:
            return cls(code)
        except (ValueError, TypeError):
            return cls.OK

    @classmethod
    def ok(cls) -> "HTTPStatus":
        return cls.OK


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.UNAUTHORIZED: "Unauthorized",
    HTTPStatus.PAYMENT_REQUIRED: "Payment Required",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.NOT_ACCEPTABLE: "Not Acceptable",
    HTTPStatus.UNPROCESSABLE_ENTITY: "Unprocessable Entity",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}
