"""
=============================================================================
FROM TRIPLE TO BYTES
=============================================================================

The handler hands back three Python values. The client expects HTTP/1.1
text on a socket. This module is the bridge:

    Response(                              HTTP/1.1 200 OK\\r\\n
      200,                        ───►     Content-Type: text/html\\r\\n
      {"Content-Type": "text/html"},       Content-Length: 11\\r\\n
      ["Hello World"],                     Date: Sat, 18 Oct 2026 ...\\r\\n
    )                                      Server: PyRack/1.0\\r\\n
                                           Connection: close\\r\\n
                                           \\r\\n
                                           Hello World

=============================================================================
WHAT THE SERVER ADDS
=============================================================================

The handler only has to supply Content-Type. The server fills in the
headers that depend on the transport rather than the application:

    ┌─────────────────┬─────────────────────────────────────────────────┐
    │ Content-Length  │ sum of the encoded chunk sizes, unless the      │
    │                 │ handler set it (never for 1xx/204/304)          │
    │ Date            │ now, in IMF-fixdate format (RFC 7231 §7.1.1.1)  │
    │ Server          │ ServerConfig.server_name                        │
    │ Connection      │ keep-alive or close, decided by the server loop │
    └─────────────────┴─────────────────────────────────────────────────┘

str chunks are encoded as UTF-8; bytes chunks go out untouched.

For a HEAD request everything is the same except the body bytes are
dropped, so Content-Length still tells the client how big a GET would be.

=============================================================================
"""

from datetime import datetime, timezone
from typing import Iterable, Union

from ..handler import Response
from .status_codes import reason_phrase, status_allows_body


def encode_chunk(chunk: Union[str, bytes]) -> bytes:
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    return bytes(chunk)


def encode_body(body: Iterable[Union[str, bytes]]) -> bytes:
    """Join a body's chunks into the bytes that go on the wire."""
    return b"".join(encode_chunk(chunk) for chunk in body)


def serialize_response(
    response: Response,
    server_name: str = "PyRack/1.0",
    head: bool = False,
    keep_alive: bool = False,
    keep_alive_timeout: float = 5.0,
) -> bytes:
    """
    Serialize a Response Triple to HTTP/1.1 bytes.

    The body is iterated once. The response's own headers dict is not
    modified; transport headers are added to a copy.

    Args:
        response: The triple (status, headers, body).
        server_name: Value for the Server header.
        head: True for HEAD requests; the body is measured but not sent.
        keep_alive: Whether the server will read another request on this
            connection after this response.
        keep_alive_timeout: Advertised in the Keep-Alive header.

    Returns:
        Status line, headers, blank line and body, ready for sendall().
    """
    status, headers, body = response
    body_bytes = encode_body(body)

    out = dict(headers)
    present = {name.lower() for name in out}

    if status_allows_body(status):
        if "content-length" not in present:
            out["Content-Length"] = str(len(body_bytes))
    else:
        body_bytes = b""

    if "date" not in present:
        out["Date"] = format_http_date(datetime.now(timezone.utc))
    if "server" not in present:
        out["Server"] = server_name

    # Framing and the connection are the server's decision, not the handler's
    for name in [n for n in out if n.lower() in ("connection", "keep-alive", "transfer-encoding")]:
        del out[name]
    if keep_alive:
        out["Connection"] = "keep-alive"
        out["Keep-Alive"] = f"timeout={int(keep_alive_timeout)}"
    else:
        out["Connection"] = "close"

    lines = [f"HTTP/1.1 {int(status)} {reason_phrase(status)}"]
    lines.extend(f"{name}: {value}" for name, value in out.items())
    lines.append("")
    head_bytes = "\r\n".join(lines).encode("latin-1") + b"\r\n"

    if head:
        return head_bytes
    return head_bytes + body_bytes


def error_response(status: int, message: str = "") -> Response:
    """
    A plain-text triple for errors the server answers itself.

    Used for parse errors, timeouts, overload and for handler failures.
    The message is for the client; don't put tracebacks in it.
    """
    text = message or reason_phrase(status)
    return Response(status, {"Content-Type": "text/plain; charset=utf-8"}, [text + "\n"])


def format_http_date(dt: datetime) -> str:
    """
    IMF-fixdate, the only date format HTTP/1.1 servers should send:

        Sun, 06 Nov 1994 08:49:37 GMT

    Day and month names are spelled out here rather than with strftime
    so the result doesn't change with the process locale.
    """
    weekday = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"][dt.weekday()]
    month = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
             "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"][dt.month - 1]
    return f"{weekday}, {dt.day:02d} {month} {dt.year} {dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
