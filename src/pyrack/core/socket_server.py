"""
=============================================================================
TCP ACCEPT LOOP
=============================================================================

The part of the hosting server that owns the listening socket. It works in
two steps, so the caller can react between them (the launcher prints its
banner only once the port is really ours):

    bind()     socket() → setsockopt() → bind(host, port) → listen(backlog)
                   │
                   ▼
    serve()    while running:
                   accept()  ──► Connection ──► connection_handler(conn)

accept() waits at most one second at a time so the loop can notice a
shutdown request.

=============================================================================
SIGNALS
=============================================================================

While serve() runs on the main thread, SIGINT (Ctrl+C) and SIGTERM ask it
to stop and the previous handlers come back afterwards. Python only lets
the main thread install signal handlers, so a server started on a
background thread (as the tests do) is stopped by calling shutdown().

=============================================================================
"""

import contextlib
import logging
import signal
import socket
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)

ConnectionHandler = Callable[[Connection], None]


class SocketServer:
    """
    Owns the listening socket; hands every accepted client to a callback.

        server = SocketServer(config)
        server.bind()                       # OSError if the port is taken
        server.serve(handle_connection)     # blocks until shutdown()
    """

    ACCEPT_TIMEOUT = 1.0

    def __init__(self, config: ServerConfig):
        self.config = config
        self._listener: Optional[socket.socket] = None
        self._running = False
        self._bound = threading.Event()
        self._stop_requested = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """Where we're listening, or the configured address before bind()."""
        if self._listener is not None:
            return self._listener.getsockname()[:2]
        return (self.config.host, self.config.port)

    # =========================================================================
    # BIND
    # =========================================================================

    def bind(self) -> Tuple[str, int]:
        """
        Open the listening socket.

        Raises:
            OSError: the address can't be bound (port in use, privileged
                port without root, unknown host).
        """
        if self._listener is not None:
            return self.address

        family = socket.AF_INET6 if ":" in self.config.host else socket.AF_INET
        listener = socket.socket(family, socket.SOCK_STREAM)
        try:
            # Restart immediately instead of waiting out TIME_WAIT
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            # Small responses (like "Hello World") shouldn't wait for Nagle
            listener.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            listener.bind((self.config.host, self.config.port))
            listener.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            listener.close()
            raise

        listener.settimeout(self.ACCEPT_TIMEOUT)
        self._listener = listener
        self._bound.set()
        logger.info(f"Listening on {self.address[0]}:{self.address[1]}")
        return self.address

    def wait_until_bound(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. Handy for tests."""
        return self._bound.wait(timeout)

    # =========================================================================
    # SERVE
    # =========================================================================

    def serve(self, connection_handler: ConnectionHandler):
        """
        Accept connections until shutdown(). Binds first if needed.

        The listening socket is closed when this returns.
        """
        self.bind()
        self._running = True
        try:
            with self._signals():
                while not self._stop_requested.is_set():
                    conn = self._accept()
                    if conn is not None:
                        connection_handler(conn)
        finally:
            self._running = False
            self.close()

    def start(self, connection_handler: ConnectionHandler):
        """bind() and serve() in one call."""
        self.bind()
        self.serve(connection_handler)

    def _accept(self) -> Optional[Connection]:
        try:
            client, address = self._listener.accept()
        except socket.timeout:
            return None
        except OSError as e:
            if not self._stop_requested.is_set():
                logger.error(f"Accept error: {e}")
            self._stop_requested.set()
            return None

        logger.debug(f"Accepted connection from {address[0]}:{address[1]}")
        return Connection(
            socket=client,
            address=address,
            buffer_size=self.config.buffer_size,
            timeout=self.config.timeout,
            keep_alive_timeout=self.config.keep_alive_timeout,
            max_request_size=self.config.max_request_size,
        )

    @contextlib.contextmanager
    def _signals(self):
        """SIGINT/SIGTERM call shutdown() for the duration of the block."""
        if threading.current_thread() is not threading.main_thread():
            yield
            return

        def request_shutdown(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, shutting down...")
            self.shutdown()

        previous = {sig: signal.signal(sig, request_shutdown) for sig in (signal.SIGINT, signal.SIGTERM)}
        try:
            yield
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)

    # =========================================================================
    # STOP
    # =========================================================================

    def shutdown(self):
        """Stop the accept loop within about a second. Safe to call twice."""
        self._stop_requested.set()

    def close(self):
        """Release the listening socket."""
        if self._listener is not None:
            with contextlib.suppress(OSError):
                self._listener.close()
            self._listener = None
            logger.info("Socket server stopped")
        self._bound.clear()
        self._stop_requested.clear()
