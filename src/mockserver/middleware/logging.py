"""
=============================================================================
ACCESS LOGGING
=============================================================================

One log line per resolved request on the "mockserver.access" logger.

    text:  127.0.0.1 - - [16/Oct/2026:10:00:00 +0000] "GET /hello" 200 12 0.41ms matched
    json:  {"request_id": "1f2e3d4c", "method": "GET", "path": "/hello", ...}

The outcome column tells route authors WHY a request got its answer
(no_route, method_mismatch, precondition_failed, ...), which is most of
what debugging a mock configuration is about.

=============================================================================
"""

import json
import logging
import time
import uuid
from dataclasses import asdict, dataclass
from typing import Optional

from ..http.request import Request
from ..http.resolver import Resolution
from .base import Middleware, NextHandler

logger = logging.getLogger("mockserver.access")


@dataclass
class RequestLog:
    """Structured log entry for one request."""

    request_id: str
    method: str
    path: str
    query: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    outcome: str
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        """Apache combined-log style line with the outcome appended."""
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms {self.outcome}'
        )


class LoggingMiddleware(Middleware):
    """
    Request logging middleware.

    Args:
        log_format: "text" or "json".
        include_request_id: Add an X-Request-ID header to the response.
        log_level: Level used for access log records.
        skip_paths: Paths never logged.
    """

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = False,
        log_level: int = logging.INFO,
        skip_paths: Optional[list[str]] = None,
    ):
        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level
        self.skip_paths = set(skip_paths or [])

    def __call__(self, request: Request, next: NextHandler) -> Resolution:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.time()

        try:
            resolution = next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.uri} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.time() - start_time) * 1000

        if request.uri not in self.skip_paths:
            response = resolution.response
            log_entry = RequestLog(
                request_id=request_id,
                method=str(request.method),
                path=request.uri,
                query="&".join(f"{k}={v}" for k, v in request.query_strings.items()),
                client_ip=request.client_address[0] or "-",
                user_agent=request.headers.get("User-Agent", "-"),
                status_code=response.status.code,
                content_length=len(response.body),
                outcome=resolution.outcome.value,
                duration_ms=duration_ms,
                timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
            )

            if self.log_format == "json":
                logger.log(self.log_level, json.dumps(log_entry.to_dict()))
            else:
                logger.log(self.log_level, log_entry.to_text())

        if self.include_request_id:
            resolution.response.headers["X-Request-ID"] = request_id

        return resolution
