"""
=============================================================================
MIDDLEWARE
=============================================================================

Middleware wraps the resolver to add cross-cutting behaviour (access
logging, extra headers) without touching route resolution itself.

    ┌─────────────────────────────────────────────────────────┐
    │  LoggingMiddleware                                      │
    │  ┌───────────────────────────────────────────────────┐  │
    │  │  ...more middleware                               │  │
    │  │  ┌─────────────────────────────────────────────┐  │  │
    │  │  │         ResponseResolver.resolve            │  │  │
    │  │  └─────────────────────────────────────────────┘  │  │
    │  └───────────────────────────────────────────────────┘  │
    └─────────────────────────────────────────────────────────┘

The request flows inward, the Resolution flows back outward. First added
is outermost.

=============================================================================
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, List

from ..http.request import Request
from ..http.resolver import Resolution

logger = logging.getLogger(__name__)

# Signature of the next middleware or of the resolver itself
NextHandler = Callable[[Request], Resolution]


class Middleware(ABC):
    """
    Base class for middleware.

        class AddHeader(Middleware):
            def __call__(self, request, next):
                resolution = next(request)
                resolution.response.set_header("X-Mock", "1")
                return resolution
    """

    @abstractmethod
    def __call__(self, request: Request, next: NextHandler) -> Resolution:
        """Process the request, normally by calling next(request)."""

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Chains middleware around a final handler.

        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware())
        handler = pipeline.wrap(resolver.resolve)
        resolution = handler(request)
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Wrap `handler` with every middleware.

        Wrapping happens in reverse so that [A, B, C] yields A(B(C(handler))).
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._create_wrapped_handler(middleware, current)
        return current

    @staticmethod
    def _create_wrapped_handler(middleware: Middleware, next_handler: NextHandler) -> NextHandler:
        def wrapped(request: Request) -> Resolution:
            return middleware(request, next_handler)

        return wrapped

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self):
        return iter(self._middleware)
