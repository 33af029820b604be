"""
=============================================================================
MOCK SERVER CLI ENTRY POINT
=============================================================================

    # Serve the routes of a file on the address it declares
    python -m mockserver routes.json

    # Override the address
    python -m mockserver routes.json --host 0.0.0.0 --port 3000

    # Close the connection instead of answering 400/500 on errors
    python -m mockserver routes.json --error-mode abort

    # JSON access log, more workers
    python -m mockserver routes.json --log-format json --workers 8

Settings come from, highest priority first: command-line arguments,
MOCK_* environment variables, "host"/"port" in the route file, defaults.

=============================================================================
"""

import argparse
import os
import sys
from typing import Optional

from . import __version__
from .config import ERROR_MODES, ServerConfig, load_server_file
from .errors import MockServerError
from .middleware import LoggingMiddleware
from .server import MockServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mockserver",
        description="Declarative HTTP mock server driven by a JSON route file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m mockserver routes.json                  # Address from the file
  python -m mockserver routes.json --port 3000      # Custom port
  python -m mockserver routes.json --host 0.0.0.0   # Listen on all interfaces
  python -m mockserver routes.json --error-mode abort
        """,
    )

    parser.add_argument(
        "routes",
        nargs="?",
        default=os.getenv("MOCK_ROUTES"),
        help="Route file (JSON). Defaults to $MOCK_ROUTES",
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: route file, then 127.0.0.1)",
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: route file, then 8000)",
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=None,
        help="Idle timeout per connection in seconds (default: 30)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # PERFORMANCE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Worker threads kept alive when idle (default: 4)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # BEHAVIOUR / LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--error-mode",
        choices=ERROR_MODES,
        default=None,
        help="respond: answer 400/500 on errors; abort: close the connection",
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Access log format (default: text)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"mockserver {__version__}",
    )

    return parser


def build_config(args: argparse.Namespace, file_host: Optional[str], file_port: Optional[int]) -> ServerConfig:
    """Merge CLI arguments, environment and route file values."""
    config = ServerConfig.from_env()

    if args.host:
        config.host = args.host
    elif "MOCK_HOST" not in os.environ and file_host:
        config.host = file_host

    if args.port is not None:
        config.port = args.port
    elif "MOCK_PORT" not in os.environ and file_port is not None:
        config.port = file_port

    if args.workers is not None:
        config.min_workers = args.workers
    if args.timeout is not None:
        config.timeout = args.timeout
    if args.error_mode:
        config.error_mode = args.error_mode
    if args.log_level:
        config.log_level = args.log_level

    config.log_format = args.log_format
    config.routes_file = args.routes
    return config


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.routes:
        parser.error("a route file is required (argument or $MOCK_ROUTES)")

    try:
        server_file = load_server_file(args.routes)
        config = build_config(args, server_file.host, server_file.port)
        config.validate()
    except (MockServerError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    server = MockServer(config, server_file.routes)
    server.use(LoggingMiddleware(log_format=config.log_format))

    try:
        server.run()
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
