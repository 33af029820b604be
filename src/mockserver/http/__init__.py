"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything between raw bytes and the response the mock sends back.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   bytes ──► RequestParser ──► Request ──► ResponseResolver ──► Resp │
    │                  │                              │                    │
    │                  │                              ├── RouteTable       │
    │                  └── split_key_value            ├── HTTPStatus       │
    │                                                 └── get_mime_type    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .helpers import split_key_value
from .mime_types import get_mime_type, mime_type_for_path
from .request import Method, Request, RequestParser, UnrecognizedMethod, parse_request
from .resolver import Outcome, Resolution, ResponseResolver, resolve
from .response import Response
from .routes import ResultType, RouteEntry, RouteTable
from .status_codes import HTTPStatus

__all__ = [
    # Parsing
    "split_key_value",
    "Method",
    "UnrecognizedMethod",
    "Request",
    "RequestParser",
    "parse_request",

    # Routes
    "ResultType",
    "RouteEntry",
    "RouteTable",

    # Resolution
    "Outcome",
    "Resolution",
    "ResponseResolver",
    "resolve",
    "Response",

    # Registries
    "HTTPStatus",
    "get_mime_type",
    "mime_type_for_path",
]
