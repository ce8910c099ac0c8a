"""
=============================================================================
CORE: SOCKETS AND THREADS
=============================================================================

The machinery under the hosting server. None of it knows about handlers
or triples; it moves bytes and runs tasks.

    socket_server.py   listening socket and accept loop
    connection.py      one client socket, buffered into whole requests
    thread_pool.py     worker threads that process connections

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState, RequestTooLarge
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "RequestTooLarge",
    "ThreadPool",
]
