"""
=============================================================================
THE HOSTING SERVER
=============================================================================

Everything the handler is allowed to ignore happens here. The handler
gets an environ and returns a triple; this module does the rest.

=============================================================================
ONE REQUEST, START TO FINISH
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   SocketServer.accept()            main thread                       │
    │          │                                                           │
    │          ▼                                                           │
    │   ThreadPool.submit(conn)          ──► worker thread from here on    │
    │          │                                                           │
    │          ▼                                                           │
    │   Connection.read_request()        bytes                             │
    │          │                                                           │
    │          ▼                                                           │
    │   RequestParser.parse()            HTTPRequest   (bad? → 4xx/5xx)    │
    │          │                                                           │
    │          ▼                                                           │
    │   build_environ()                  environ dict                      │
    │          │                                                           │
    │          ▼                                                           │
    │   handler(environ)                 triple        (raises? → 500)     │
    │          │                                                           │
    │          ▼                                                           │
    │   validate_response()              Response      (invalid? → 500)    │
    │          │                                                           │
    │          ▼                                                           │
    │   serialize_response()             bytes                             │
    │          │                                                           │
    │          ▼                                                           │
    │   Connection.send_response()       ──► keep-alive? read the next one │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ERRORS ARE THE SERVER'S JOB
=============================================================================

A handler that raises doesn't need a try/except of its own. We catch the
exception, log it with its traceback, and send

    HTTP/1.1 500 Internal Server Error
    Content-Type: text/plain; charset=utf-8

    Internal Server Error

The traceback goes to the log, never to the client. The worker thread and
the connection loop survive, so the next request is served normally.

A triple that breaks the contract (see lint.py) is handled the same way:
from the client's point of view, a handler that returned garbage and a
handler that crashed look identical.

=============================================================================
ACCESS LOG
=============================================================================

One line per request on the "pyrack.access" logger, in Common Log Format
plus the time taken:

    127.0.0.1 - - [18/Oct/2026:10:55:36 +0000] "GET / HTTP/1.1" 200 14 0.0003

=============================================================================
"""

import logging
import time
from typing import Optional

from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionState, RequestTooLarge, ThreadPool
from .environ import build_environ
from .handler import Environ, HandlerFunc, Response, handler_name, is_handler
from .http import (
    HTTPRequest, RequestParser, HTTPParseError, HTTPStatus,
    serialize_response, error_response, encode_body,
)
from .lint import validate_response, collect_body


logger = logging.getLogger(__name__)
access_logger = logging.getLogger("pyrack.access")


class Server:
    """
    Serve one handler over HTTP/1.1.

        from pyrack import Server, ServerConfig
        from pyrack.apps import PrettyHello

        Server(PrettyHello(), ServerConfig(port=9292)).run()

    The handler is shared by every worker thread; the environ and the
    response are not.
    """

    def __init__(self, handler: HandlerFunc, config: Optional[ServerConfig] = None):
        if not is_handler(handler):
            raise TypeError(f"handler must be callable, got {type(handler).__name__}")

        self.handler = handler
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._running = False

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, banner: bool = True):
        """
        Serve until shutdown() or Ctrl+C. Blocks.

        Args:
            banner: Print the startup banner on stdout.

        Raises:
            OSError: the port can't be bound. Nothing is printed in that case.
        """
        self._setup_logging()
        logger.info(f"Starting {self.config.server_name} on {self.config.host}:{self.config.port}")

        self._socket_server.bind()
        self._running = True
        self._thread_pool.start()

        if banner:
            self._print_startup_banner()

        try:
            self._socket_server.serve(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Ask a running server to stop. Callable from any thread."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listening socket is bound."""
        return self._socket_server.wait_until_bound(timeout)

    @property
    def is_running(self) -> bool:
        return self._running

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("pyrack").setLevel(level)

    def _print_startup_banner(self):
        for line in startup_banner(self.handler, self.config):
            print(line)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._socket_server.close()
        self._thread_pool.shutdown(wait=True, timeout=30.0)
        logger.info("Server stopped")

    # =========================================================================
    # CALLING THE HANDLER
    # =========================================================================

    def respond(self, environ: Environ) -> Response:
        """
        Call the handler and return a Response with a fully-read body.

        Never raises: any exception from the handler, or any broken rule
        of the contract, becomes a 500 Response.
        """
        try:
            result = self.handler(environ)
            if self.config.lint:
                return validate_response(result)
            status, headers, body = result
            return Response(int(status), dict(headers), collect_body(body))
        except Exception as e:
            logger.exception(
                f"{handler_name(self.handler)} failed on "
                f"{environ.get('REQUEST_METHOD')} {environ.get('PATH_INFO')}: {e}"
            )
            return error_response(HTTPStatus.INTERNAL_SERVER_ERROR)

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Called on the accept thread: hand the connection to a worker."""
        try:
            submitted = self._thread_pool.submit(
                self._process_connection,
                args=(conn,),
                timeout=self.config.timeout,
            )
        except RuntimeError:
            submitted = False

        if not submitted:
            logger.warning(f"[{conn.id}] No worker available, rejecting connection")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
            conn.close()

    def _process_connection(self, conn: Connection):
        """Worker thread: the keep-alive loop for one connection."""
        with conn:
            while self._running:
                try:
                    raw = conn.read_request()
                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                    break
                except RequestTooLarge as e:
                    self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, str(e))
                    break

                if raw is None:
                    break

                try:
                    request = self._parser.parse(raw, conn.address)
                except HTTPParseError as e:
                    logger.info(f"[{conn.id}] Bad request from {conn.client_ip}: {e}")
                    self._send_error(conn, e.status_code, str(e))
                    break

                conn.state = ConnectionState.PROCESSING
                keep_alive = self.config.keep_alive and request.is_keep_alive and self._running

                if not self._serve_request(conn, request, keep_alive):
                    break
                if not keep_alive:
                    break
                conn.set_keep_alive()

    def _serve_request(self, conn: Connection, request: HTTPRequest, keep_alive: bool) -> bool:
        started = time.time()
        environ = build_environ(request, self.config.host, self.config.port)
        response = self.respond(environ)
        head = request.method == "HEAD"

        try:
            body, data = self._encode(response, head, keep_alive)
        except Exception as e:
            # Only reachable with lint off: e.g. a header value that isn't latin-1
            logger.exception(f"Cannot serialize response from {handler_name(self.handler)}: {e}")
            response = error_response(HTTPStatus.INTERNAL_SERVER_ERROR)
            body, data = self._encode(response, head, keep_alive)
        sent = conn.send_response(data)

        if self.config.access_log:
            access_logger.info(
                format_access_line(request, response.status, len(body), time.time() - started)
            )
        return sent

    def _encode(self, response: Response, head: bool, keep_alive: bool):
        """(body bytes, full response bytes) for a Response."""
        body = encode_body(response.body)
        data = serialize_response(
            Response(response.status, response.headers, [body]),
            server_name=self.config.server_name,
            head=head,
            keep_alive=keep_alive,
            keep_alive_timeout=self.config.keep_alive_timeout,
        )
        return body, data

    def _send_error(self, conn: Connection, status: int, message: str):
        """Answer a request the handler never saw (bad syntax, timeout, overload)."""
        data = serialize_response(
            error_response(status, message),
            server_name=self.config.server_name,
            keep_alive=False,
        )
        conn.send_response(data)


def format_access_line(request: HTTPRequest, status: int, size: int, duration: float) -> str:
    """
    Common Log Format, followed by the duration in seconds.

    A zero-byte body is logged as "-", as CLF expects.
    """
    timestamp = time.strftime("%d/%b/%Y:%H:%M:%S %z")
    target = request.path + (f"?{request.query_string}" if request.query_string else "")
    return (
        f'{request.client_address[0] or "-"} - - [{timestamp}] '
        f'"{request.method} {target} {request.version}" {int(status)} '
        f'{size or "-"} {duration:.4f}'
    )


def startup_banner(handler: HandlerFunc, config: ServerConfig) -> list:
    """The lines printed when the server starts."""
    rows = [
        f"{config.server_name} serving {handler_name(handler)}",
        f"Listening on {config.url}",
        f"Workers: {config.min_workers}-{config.max_workers} threads",
        "Press Ctrl+C to stop",
    ]
    width = max(len(row) for row in rows) + 2
    lines = ["╔" + "═" * width + "╗"]
    lines.extend("║ " + row.ljust(width - 1) + "║" for row in rows)
    lines.append("╚" + "═" * width + "╝")
    return lines
