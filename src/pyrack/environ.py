"""
=============================================================================
THE REQUEST ENVIRONMENT
=============================================================================

The single argument every handler receives. It's a plain dict, built
fresh for every request, holding everything the server knows about it:

    ┌────────────────────┬──────────────────────────────────────────────┐
    │ REQUEST_METHOD     │ "GET", "POST", ...                           │
    │ SCRIPT_NAME        │ "" (the handler is mounted at the root)      │
    │ PATH_INFO          │ "/greet" (%XX decoded as latin-1)           │
    │ QUERY_STRING       │ "name=Ada" (raw, no "?")                     │
    │ SERVER_NAME        │ "localhost"                                  │
    │ SERVER_PORT        │ "9292" (a string!)                           │
    │ SERVER_PROTOCOL    │ "HTTP/1.1"                                   │
    │ REMOTE_ADDR        │ "127.0.0.1"                                  │
    │ CONTENT_TYPE       │ only if the request has one                  │
    │ CONTENT_LENGTH     │ only if the request has one                  │
    │ HTTP_*             │ every other header: User-Agent → HTTP_USER_AGENT│
    ├────────────────────┼──────────────────────────────────────────────┤
    │ pyrack.version     │ (1, 0)                                       │
    │ pyrack.url_scheme  │ "http"                                       │
    │ pyrack.input       │ binary stream over the request body          │
    │ pyrack.errors      │ text stream for diagnostics                  │
    │ pyrack.multithread │ True: other requests may run at the same time│
    │ pyrack.run_once    │ False: the handler is reused across requests │
    └────────────────────┴──────────────────────────────────────────────┘

If you have seen CGI or WSGI, the upper-case keys will look familiar.
They are the CGI variable names, the oldest shared
vocabulary between servers and applications.

=============================================================================
TESTING WITHOUT A SERVER
=============================================================================

Because the environ is only a dict, you can build one yourself and call a
handler directly. No sockets, no threads:

    >>> env = make_environ("/greet?name=Ada")
    >>> env["PATH_INFO"], env["QUERY_STRING"]
    ('/greet', 'name=Ada')

=============================================================================
"""

import io
import sys
from typing import Dict, Optional, Tuple
from urllib.parse import unquote

from .handler import Environ
from .http.request import HTTPRequest


VERSION = (1, 0)

# These two headers get CGI names without the HTTP_ prefix
_UNPREFIXED = {"content-type": "CONTENT_TYPE", "content-length": "CONTENT_LENGTH"}


def header_key(name: str) -> str:
    """
    Environ key for a request header.

        >>> header_key("User-Agent")
        'HTTP_USER_AGENT'
        >>> header_key("content-type")
        'CONTENT_TYPE'
    """
    lowered = name.lower()
    if lowered in _UNPREFIXED:
        return _UNPREFIXED[lowered]
    return "HTTP_" + lowered.upper().replace("-", "_")


def split_host(host_header: str, default_host: str, default_port: int) -> Tuple[str, str]:
    """
    SERVER_NAME and SERVER_PORT from a Host header.

    Handles "example.com", "example.com:8080" and bracketed IPv6
    "[::1]:9292". Falls back to the bind address when there's no header.
    """
    if not host_header:
        return default_host, str(default_port)

    if host_header.startswith("["):
        # [::1]:9292
        closing = host_header.find("]")
        name = host_header[1:closing] if closing != -1 else host_header[1:]
        rest = host_header[closing + 1:] if closing != -1 else ""
        port = rest[1:] if rest.startswith(":") else ""
    else:
        name, _, port = host_header.partition(":")

    return name or default_host, port or str(default_port)


def base_environ() -> Environ:
    """The pyrack.* keys every environ carries."""
    return {
        "SCRIPT_NAME": "",
        "pyrack.version": VERSION,
        "pyrack.url_scheme": "http",
        "pyrack.errors": sys.stderr,
        "pyrack.multithread": True,
        "pyrack.run_once": False,
    }


def build_environ(request: HTTPRequest, server_host: str, server_port: int) -> Environ:
    """
    Build the environ for one parsed request.

    Args:
        request: The parsed request.
        server_host: Host the server is bound to (fallback SERVER_NAME).
        server_port: Port the server is bound to (fallback SERVER_PORT).

    Returns:
        A new dict; nothing in it is shared with any other request.
    """
    environ = base_environ()

    server_name, port = split_host(request.host, server_host, server_port)
    environ.update({
        "REQUEST_METHOD": request.method,
        "PATH_INFO": request.path,
        "QUERY_STRING": request.query_string,
        "SERVER_NAME": server_name,
        "SERVER_PORT": port,
        "SERVER_PROTOCOL": request.version,
        "REMOTE_ADDR": request.client_address[0],
        "pyrack.input": io.BytesIO(request.body),
    })

    for name, value in request.headers.items():
        environ[header_key(name)] = value

    return environ


def make_environ(
    target: str = "/",
    method: str = "GET",
    headers: Optional[Dict[str, str]] = None,
    body: bytes = b"",
    server_name: str = "localhost",
    server_port: int = 9292,
    remote_addr: str = "127.0.0.1",
) -> Environ:
    """
    Build an environ by hand, for tests and for trying handlers in a REPL.

        >>> env = make_environ("/search?q=rack", method="POST", body=b"x=1",
        ...                    headers={"Content-Type": "application/x-www-form-urlencoded"})
        >>> env["CONTENT_LENGTH"]
        '3'

    Args:
        target: Path with optional "?query".
        method: Request method.
        headers: Request headers by their HTTP names.
        body: Request body; sets CONTENT_LENGTH when non-empty.
        server_name: SERVER_NAME.
        server_port: SERVER_PORT.
        remote_addr: REMOTE_ADDR.
    """
    path, _, query_string = target.partition("?")

    environ = base_environ()
    environ.update({
        "REQUEST_METHOD": method.upper(),
        "PATH_INFO": unquote(path, encoding="latin-1") or "/",
        "QUERY_STRING": query_string,
        "SERVER_NAME": server_name,
        "SERVER_PORT": str(server_port),
        "SERVER_PROTOCOL": "HTTP/1.1",
        "REMOTE_ADDR": remote_addr,
        "pyrack.input": io.BytesIO(body),
    })

    for name, value in (headers or {}).items():
        environ[header_key(name)] = value

    if body and "CONTENT_LENGTH" not in environ:
        environ["CONTENT_LENGTH"] = str(len(body))

    return environ
