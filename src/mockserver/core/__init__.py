"""
=============================================================================
CORE NETWORKING
=============================================================================

Transport layer of the mock server:

    SocketServer   listening socket and accept loop
    Connection     buffered line reader + writer around one client socket
    ThreadPool     worker threads, one task per connection

Nothing here knows about routes or HTTP semantics.

=============================================================================
"""

from .connection import Connection, ConnectionState
from .socket_server import SocketServer
from .thread_pool import ThreadPool

__all__ = [
    "Connection",
    "ConnectionState",
    "SocketServer",
    "ThreadPool",
]
