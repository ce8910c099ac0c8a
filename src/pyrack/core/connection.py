"""
=============================================================================
ONE CLIENT CONNECTION
=============================================================================

The socket server hands each accepted socket to a Connection. The
Connection's one job is to turn a TCP byte stream back into whole HTTP
requests, and to write whole responses back.

=============================================================================
WHY BUFFERING?
=============================================================================

TCP delivers bytes, not messages. A request the client wrote in one go
can show up in any number of recv() calls:

    recv() → b"GET / HT"
    recv() → b"TP/1.1\\r\\nHost: local"
    recv() → b"host\\r\\n\\r\\n"

So we keep a buffer and read until we've seen:

    1. the blank line that ends the headers   (\\r\\n\\r\\n)
    2. Content-Length more bytes of body

Anything after that belongs to the NEXT request (pipelining) and stays in
the buffer.

=============================================================================
TIMEOUTS
=============================================================================

    first request on a connection     config.timeout        (30s)
    later requests (keep-alive)       config.keep_alive_timeout (5s)

A keep-alive timeout is normal: the client is simply done. A timeout on
the first request means someone connected and said nothing, which the
server answers with 408.

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional


logger = logging.getLogger(__name__)


class RequestTooLarge(Exception):
    """The client sent more than max_request_size bytes for one request."""


class ConnectionState(Enum):
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    KEEP_ALIVE = "keep_alive"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    A client socket plus the buffer and bookkeeping around it.

    Use it as a context manager so the socket is always released:

        with conn:
            raw = conn.read_request()
            conn.send_response(data)
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    keep_alive_timeout: float = 5.0
    max_request_size: int = 10 * 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    def read_request(self) -> Optional[bytes]:
        """
        Read exactly one request (headers + body) from the socket.

        Returns:
            The request bytes, or None if the client closed the connection
            (or went quiet on a kept-alive connection).

        Raises:
            TimeoutError: the first request didn't arrive in time.
            RequestTooLarge: the request exceeded max_request_size.
        """
        self.state = ConnectionState.READING
        if self.requests_handled > 0:
            self.socket.settimeout(self.keep_alive_timeout)

        try:
            while b"\r\n\r\n" not in self._buffer:
                chunk = self._recv()
                if not chunk:
                    return None
                self._append(chunk)

            header_end = self._buffer.find(b"\r\n\r\n")
            body_start = header_end + 4
            content_length = self._content_length(self._buffer[:header_end])

            if body_start + content_length > self.max_request_size:
                raise RequestTooLarge(f"Request too large: {body_start + content_length} bytes")

            while len(self._buffer) - body_start < content_length:
                chunk = self._recv()
                if not chunk:
                    # Client gave up mid-body; hand over what we have and
                    # let the parser reject it
                    break
                self._append(chunk)

            request_end = body_start + content_length
            request, self._buffer = self._buffer[:request_end], self._buffer[request_end:]
            self.requests_handled += 1
            return request

        except socket.timeout:
            if self.requests_handled > 0 and not self._buffer:
                logger.debug(f"[{self.id}] Keep-alive timeout")
                return None
            raise TimeoutError("Request read timeout")

        finally:
            self.socket.settimeout(self.timeout)

    def _recv(self) -> bytes:
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    def _append(self, chunk: bytes):
        self._buffer += chunk
        if len(self._buffer) > self.max_request_size:
            raise RequestTooLarge(f"Request too large: {len(self._buffer)} bytes")

    @staticmethod
    def _content_length(header_bytes: bytes) -> int:
        """
        Content-Length straight from the raw headers.

        We need it before the request is parsed, so this is a quick scan.
        A malformed value counts as 0 here; the parser reports it properly.
        """
        for line in header_bytes.split(b"\r\n")[1:]:
            name, _, value = line.partition(b":")
            if name.strip().lower() == b"content-length":
                value = value.strip()
                return int(value) if value.isdigit() else 0
        return 0

    def send_response(self, data: bytes) -> bool:
        """
        sendall() the response.

        Returns:
            False if the client has gone away.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def set_keep_alive(self):
        self.state = ConnectionState.KEEP_ALIVE

    def close(self):
        """
        Close politely: send FIN, drain what the client still sends, close.

        Draining matters: closing a socket with unread data makes the
        kernel send RST, and the client may lose the response we just wrote.
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Closed after {self.requests_handled} request(s)")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
