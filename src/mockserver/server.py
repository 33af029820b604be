"""
=============================================================================
MOCK SERVER
=============================================================================

Wires the pieces together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   SocketServer ── accept ──► ThreadPool ── worker ──► _process_conn │
    │                                                          │           │
    │        ┌─────────────────────────────────────────────────┘           │
    │        ▼                                                             │
    │   RequestParser.parse(conn)      bytes  → Request                    │
    │        ▼                                                             │
    │   middleware(resolver.resolve)   Request → Resolution                │
    │        ▼                                                             │
    │   conn.send(response.to_bytes()) then close                         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Every connection carries exactly one request and is closed after the
response (Connection: close). The route table is built once before run()
and only ever read afterwards.

=============================================================================
"""

import logging
import socket
from typing import Callable, Optional

from .config import ServerConfig
from .core import Connection, SocketServer, ThreadPool
from .core.connection import ConnectionState
from .errors import MockServerError, ParsingError
from .http import (
    HTTPStatus,
    Request,
    RequestParser,
    Resolution,
    Response,
    ResponseResolver,
    RouteTable,
)
from .middleware import Middleware, MiddlewarePipeline

logger = logging.getLogger(__name__)


class MockServer:
    """
    Declarative HTTP mock server.

    Usage:
        routes = load_route_table("routes.json")
        server = MockServer(ServerConfig(port=8000), routes)
        server.use(LoggingMiddleware())
        server.run()   # blocks until Ctrl+C / SIGTERM / shutdown()
    """

    def __init__(self, config: Optional[ServerConfig] = None, route_table: Optional[RouteTable] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self.route_table = route_table if route_table is not None else RouteTable()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser(
            max_line_length=self.config.max_line_length,
            max_headers=self.config.max_headers,
        )
        self._resolver = ResponseResolver(self.route_table)
        self._middleware = MiddlewarePipeline()

        self._handler: Optional[Callable[[Request], Resolution]] = None

    def use(self, middleware: Middleware) -> "MockServer":
        """Add middleware around route resolution. First added = outermost."""
        self._middleware.add(middleware)
        self._handler = None
        return self

    @property
    def address(self) -> tuple[str, int]:
        """Bound address; the real port once listening with port=0."""
        return self._socket_server.address

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, host: Optional[str] = None, port: Optional[int] = None, setup_logging: bool = True):
        """
        Start serving (blocking).

        Args:
            host: Override config host.
            port: Override config port.
            setup_logging: Configure the root logger from the config.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        if setup_logging:
            self._setup_logging()

        self._thread_pool.start()

        logger.info(
            f"Starting mock server on {self.config.host}:{self.config.port} "
            f"with {len(self.route_table)} routes (error mode: {self.config.error_mode})"
        )
        for entry in self.route_table:
            logger.debug(f"  {entry.method.value:7s} {entry.path} -> {entry.result_type}")

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server accepts connections (for tests/embedding)."""
        return self._socket_server.wait_until_ready(timeout)

    def shutdown(self):
        """Ask the accept loop to stop; run() returns shortly after."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("mockserver").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        logger.debug(f"Thread pool at shutdown: {self._thread_pool.stats}")
        self._thread_pool.shutdown(wait=True, timeout=10.0)
        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle(self, request: Request) -> Resolution:
        """Resolve one request through the middleware pipeline."""
        if self._handler is None:
            self._handler = self._middleware.wrap(self._resolver.resolve)
        return self._handler(request)

    def _handle_connection(self, conn: Connection):
        """Hand an accepted connection to the thread pool."""
        if not self._thread_pool.submit(self._process_connection, args=(conn,)):
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            conn.close()

    def _process_connection(self, conn: Connection):
        """
        Serve the single request of a connection (runs in a worker thread).

        =====================================================================
        FAILURE HANDLING
        =====================================================================

            peer closed / socket error / idle timeout   → close, no answer
            ParsingError              respond mode      → 400, close
                                      abort mode        → close
            precondition / route config error
                                      respond mode      → 400 / 500, close
                                      abort mode        → close

        =====================================================================
        """
        with conn:
            try:
                request = self._parser.parse(conn, conn.address)
            except ParsingError as e:
                logger.info(f"[{conn.id}] Bad request from {conn.client_ip}: {e}")
                if self.config.error_mode == "respond":
                    self._send(conn, Response.text(HTTPStatus.BAD_REQUEST, HTTPStatus.BAD_REQUEST.phrase))
                return
            except socket.timeout:
                logger.debug(f"[{conn.id}] Idle timeout, closing")
                return
            except OSError as e:
                # ConnectionClosedError and socket failures
                logger.debug(f"[{conn.id}] Read aborted: {e}")
                return

            if request is None:
                logger.debug(f"[{conn.id}] Closed by peer before sending a request")
                return

            conn.state = ConnectionState.PROCESSING
            resolution = self.handle(request)

            if resolution.error is not None:
                self._log_resolution_error(conn, request, resolution.error)
                if self.config.error_mode == "abort":
                    return

            self._send(conn, resolution.response)

    def _log_resolution_error(self, conn: Connection, request: Request, error: Exception):
        if isinstance(error, MockServerError) and error.status_code < 500:
            logger.info(f"[{conn.id}] {request.method} {request.uri}: {error}")
        else:
            logger.error(f"[{conn.id}] {request.method} {request.uri}: {type(error).__name__}: {error}")

    def _send(self, conn: Connection, response: Response):
        response.headers.setdefault("Connection", "close")
        conn.send(response.to_bytes(self.config.server_name))


def create_server(config: Optional[ServerConfig] = None, route_table: Optional[RouteTable] = None) -> MockServer:
    """Factory for MockServer instances."""
    return MockServer(config, route_table)
