"""
=============================================================================
MOCK SERVER ERRORS
=============================================================================

Every failure the parser and resolver can raise lives here, so the server
loop can catch one base class and decide what to do with the connection.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ERROR HIERARCHY                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   MockServerError                          (500)                     │
    │   ├── ParsingError                         (400)  bad request bytes  │
    │   ├── ConfigError                          (500)  route config fault │
    │   │   ├── ConfigParsingError                      bad shape/header   │
    │   │   └── ConfigFileOpenError                     missing body file  │
    │   └── PreconditionError                    (400)  route not honored  │
    │       ├── ConfigRequiredHeadersError                                 │
    │       └── ConfigRequiredQueriesError                                 │
    │                                                                      │
    │   ConnectionClosedError (ConnectionError)  peer hung up mid-request  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Each error carries the status code the server answers with when it runs in
"respond" mode. In "abort" mode the connection is simply closed.

=============================================================================
"""


class MockServerError(Exception):
    """
    Base class for all mock server errors.

    Like the status-carrying parse error of a classic socket server, the
    exception knows which HTTP status should be sent back to the client.
    """

    status_code = 500

    def __init__(self, message: str = "", status_code: int = None):
        super().__init__(message or self.__class__.__doc__.strip().splitlines()[0])
        if status_code is not None:
            self.status_code = status_code


class ParsingError(MockServerError):
    """Malformed request data."""

    status_code = 400


class ConfigError(MockServerError):
    """Route configuration error."""


class ConfigParsingError(ConfigError):
    """Route configuration could not be parsed."""


class ConfigFileOpenError(ConfigError):
    """Route body file could not be opened."""


class PreconditionError(MockServerError):
    """Route precondition not met."""

    status_code = 400


class ConfigRequiredHeadersError(PreconditionError):
    """Required headers missing."""


class ConfigRequiredQueriesError(PreconditionError):
    """Required query strings missing."""


class ConnectionClosedError(ConnectionError):
    """Raised when the peer closes the socket in the middle of a request."""
