"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Two kinds of configuration feed the mock server:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   ServerConfig         HOW to serve: address, limits, workers,      │
    │   (this dataclass)     logging, error mode                          │
    │                                                                      │
    │   Route file           WHAT to serve: the ordered route table       │
    │   (JSON)               loaded once by load_route_table()            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Priority (highest to lowest):

    1. Command-line arguments      python -m mockserver routes.json --port 3000
    2. Environment variables       MOCK_PORT=3000 python -m mockserver ...
    3. "host"/"port" in the route file
    4. Defaults below

=============================================================================
ROUTE FILE FORMAT
=============================================================================

Either a bare list of routes:

    [
        {"path": "/hello", "method": "GET",
         "result_type": "direct", "result": "{\\"ok\\":true}"}
    ]

or an object with the listening address and the routes under "data":

    {
        "host": "127.0.0.1",
        "port": 8000,
        "data": [ ...routes... ]
    }

=============================================================================
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ConfigFileOpenError, ConfigParsingError
from .http.routes import RouteTable

logger = logging.getLogger(__name__)

ERROR_MODES = ("respond", "abort")


@dataclass
class ServerConfig:
    """
    Configuration for the mock server.

    =========================================================================
    ERROR MODES
    =========================================================================

    "respond"  A malformed request, a missing required header/query or a
               broken route (missing file, bad result header) is answered
               with a 400/500 response before closing.

    "abort"    The same failures close the connection without a response.
               Useful to reproduce the behaviour clients saw from older
               mock servers.

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    port: int = 8000

    backlog: int = 128
    """Pending connections the OS queues before refusing."""

    buffer_size: int = 8192
    """Bytes requested per recv() call."""

    timeout: Optional[float] = 30.0
    """
    Per-connection idle timeout in seconds.
    A peer that sends nothing for this long is disconnected.
    None = wait forever (not recommended).
    """

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST LIMITS
    # ─────────────────────────────────────────────────────────────────────

    max_line_length: int = 8192
    """Longest request or header line accepted, in bytes."""

    max_headers: int = 100
    """Most header lines accepted per request."""

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    max_workers: Optional[int] = None
    """
    Upper bound on worker threads. None = no bound: every queued
    connection gets a worker of its own.
    """

    queue_size: int = 100

    # ─────────────────────────────────────────────────────────────────────
    # BEHAVIOUR
    # ─────────────────────────────────────────────────────────────────────

    routes_file: Optional[str] = None
    error_mode: str = "respond"

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    log_format: str = "text"
    """Access log format: 'text' or 'json'."""

    server_name: str = "PyMockServer/1.0"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        MOCK_HOST        Server host (default: 127.0.0.1)
        MOCK_PORT        Server port (default: 8000)
        MOCK_WORKERS     Max worker threads (default: unbounded)
        MOCK_TIMEOUT     Idle timeout in seconds (default: 30)
        MOCK_ROUTES      Route file path (default: None)
        MOCK_LOG_LEVEL   Logging level (default: INFO)
        MOCK_ERROR_MODE  respond | abort (default: respond)

        =====================================================================
        """
        return cls(
            host=os.getenv("MOCK_HOST", "127.0.0.1"),
            port=int(os.getenv("MOCK_PORT", "8000")),
            max_workers=int(os.environ["MOCK_WORKERS"]) if os.getenv("MOCK_WORKERS") else None,
            timeout=float(os.getenv("MOCK_TIMEOUT", "30")),
            routes_file=os.getenv("MOCK_ROUTES"),
            log_level=os.getenv("MOCK_LOG_LEVEL", "INFO"),
            error_mode=os.getenv("MOCK_ERROR_MODE", "respond"),
        )

    def validate(self) -> None:
        """Validate configuration values, failing fast at startup."""
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers is not None and self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_line_length < 64:
            raise ValueError("max_line_length must be >= 64")

        if self.max_headers < 1:
            raise ValueError("max_headers must be >= 1")

        if self.error_mode not in ERROR_MODES:
            raise ValueError(f"error_mode must be one of {', '.join(ERROR_MODES)}")

        if self.log_format not in ("text", "json"):
            raise ValueError("log_format must be 'text' or 'json'")


# =============================================================================
# ROUTE FILE LOADING
# =============================================================================

@dataclass(frozen=True)
class ServerFile:
    """Contents of a route file: optional address plus the route table."""

    routes: RouteTable
    host: Optional[str] = None
    port: Optional[int] = None


def load_server_file(path: str | Path) -> ServerFile:
    """
    Load and validate a route file.

    Raises:
        ConfigFileOpenError: The file does not exist or cannot be read.
        ConfigParsingError: The file is not valid JSON or not route-shaped.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigFileOpenError(f"route file not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigFileOpenError(f"cannot read route file {path}: {e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigParsingError(f"invalid JSON in {path}: {e}") from e

    server_file = parse_server_data(data)
    logger.info(f"Loaded {len(server_file.routes)} routes from {path}")
    return server_file


def parse_server_data(data) -> ServerFile:
    """Build a ServerFile from decoded JSON (list of routes or server object)."""
    if isinstance(data, list):
        return ServerFile(routes=RouteTable.from_list(data))

    if not isinstance(data, dict):
        raise ConfigParsingError("route file must hold a list or an object")

    routes = data.get("data")
    if not isinstance(routes, list):
        raise ConfigParsingError("route file object needs a 'data' list")

    host = data.get("host")
    if host is not None and not isinstance(host, str):
        raise ConfigParsingError("'host' must be a string")

    port = data.get("port")
    if port is not None and (isinstance(port, bool) or not isinstance(port, int)):
        raise ConfigParsingError("'port' must be an integer")

    return ServerFile(routes=RouteTable.from_list(routes), host=host, port=port)


def load_route_table(path: str | Path) -> RouteTable:
    """Load only the route table from a route file."""
    return load_server_file(path).routes
