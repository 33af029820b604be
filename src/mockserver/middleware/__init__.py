"""
Middleware wrapped around route resolution.

    from mockserver.middleware import LoggingMiddleware

    server.use(LoggingMiddleware(log_format="json"))
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "LoggingMiddleware",
    "RequestLog",
]
