"""
=============================================================================
MOCKSERVER - Declarative HTTP Mock Server
=============================================================================

Serves canned HTTP responses described in a JSON route file. Built on raw
sockets and a thread pool, with no framework underneath.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    mockserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m mockserver)
    ├── server.py            # MockServer: socket → parse → resolve → send
    ├── config.py            # ServerConfig + route file loading
    ├── errors.py            # Error hierarchy
    ├── core/                # Transport
    │   ├── socket_server.py # Listening socket and accept loop
    │   ├── connection.py    # Buffered line reader around a client socket
    │   └── thread_pool.py   # Worker threads
    ├── http/                # Protocol
    │   ├── request.py       # Request parsing
    │   ├── routes.py        # RouteEntry / RouteTable
    │   ├── resolver.py      # Request + table → Response
    │   ├── response.py      # Response serialization
    │   ├── status_codes.py  # Supported status codes
    │   ├── mime_types.py    # Extension → MIME type
    │   └── helpers.py       # key/value splitting
    └── middleware/
        ├── base.py          # Middleware pipeline
        └── logging.py       # Access log

=============================================================================
QUICK START
=============================================================================

    from mockserver import MockServer, ServerConfig, load_route_table
    from mockserver.middleware import LoggingMiddleware

    server = MockServer(ServerConfig(port=8000), load_route_table("routes.json"))
    server.use(LoggingMiddleware())
    server.run()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig, load_route_table, load_server_file
from .errors import MockServerError
from .server import MockServer, create_server

__all__ = [
    "MockServer",
    "MockServerError",
    "ServerConfig",
    "create_server",
    "load_route_table",
    "load_server_file",
    "__version__",
]
