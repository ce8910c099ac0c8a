"""
=============================================================================
RESPONSE LINT
=============================================================================

The handler contract is small, which makes it easy to get slightly wrong.
Python won't complain if a handler returns a string body or forgets the
Content-Type; the browser just shows something odd. This module checks a
handler's return value against every rule of the contract and says which
rule was broken.

=============================================================================
THE RULES
=============================================================================

    ┌──────────┬─────────────────────────────────────────────────────────┐
    │ triple   │ a tuple or list of exactly 3 items                      │
    ├──────────┼─────────────────────────────────────────────────────────┤
    │ status   │ int (not bool), 100..599                                │
    ├──────────┼─────────────────────────────────────────────────────────┤
    │ headers  │ a mapping                                               │
    │          │ names: non-empty str made of token characters           │
    │          │ values: latin-1 str without CR or LF (header injection) │
    │          │ no "Status" header (status belongs in element 0)        │
    │          │ no hop-by-hop headers (Connection, Transfer-Encoding…)  │
    ├──────────┼─────────────────────────────────────────────────────────┤
    │ body     │ iterable of str/bytes chunks, but NOT a str/bytes itself│
    │          │ iterates to completion                                  │
    ├──────────┼─────────────────────────────────────────────────────────┤
    │ combined │ non-empty body        → Content-Type required           │
    │          │ 1xx / 204 / 304       → no Content-Type, empty body     │
    └──────────┴─────────────────────────────────────────────────────────┘

The hosting server runs this on every response (unless --no-lint). A
failed check is treated exactly like an exception from the handler: the
client sees a 500 and the log says what went wrong.

=============================================================================
"""

import re
from collections.abc import Mapping
from typing import Any

from .handler import Response
from .http.status_codes import is_valid_status, status_allows_body


class InvalidResponseError(Exception):
    """A handler returned something that is not a valid Response Triple."""


# RFC 7230 token characters
_TOKEN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")

# Connection-level headers; framing is the server's decision
HOP_BY_HOP = frozenset({
    "connection", "keep-alive", "proxy-authenticate", "proxy-authorization",
    "te", "trailer", "trailers", "transfer-encoding", "upgrade",
})


def validate_response(value: Any) -> Response:
    """
    Check a handler's return value and normalise it.

    The body is iterated exactly once here, so a generator body is
    consumed and the returned Response carries a list of its chunks.
    If the body has a ``close()`` method it is called afterwards, even
    when a chunk fails the check.

    Args:
        value: Whatever the handler returned.

    Returns:
        A Response whose body is a list.

    Raises:
        InvalidResponseError: naming the first rule that was broken.
    """
    if not isinstance(value, (tuple, list)):
        raise InvalidResponseError(
            f"handler must return a (status, headers, body) triple, got {type(value).__name__}"
        )
    if len(value) != 3:
        raise InvalidResponseError(
            f"response triple must have exactly 3 elements, got {len(value)}"
        )

    status, headers, body = value
    check_status(status)
    check_headers(headers)
    chunks = collect_body(body)

    has_content_type = any(name.lower() == "content-type" for name in headers)
    has_content = any(len(chunk) > 0 for chunk in chunks)

    if status_allows_body(status):
        if has_content and not has_content_type:
            raise InvalidResponseError("Content-Type header is required when the body is non-empty")
    else:
        if has_content_type:
            raise InvalidResponseError(f"Content-Type header is not allowed with status {status}")
        if has_content:
            raise InvalidResponseError(f"status {status} must not have a body")

    return Response(int(status), dict(headers), chunks)


def check_status(status: Any) -> None:
    if not is_valid_status(status):
        raise InvalidResponseError(
            f"status must be an integer between 100 and 599, got {status!r}"
        )


def check_headers(headers: Any) -> None:
    if not isinstance(headers, Mapping):
        raise InvalidResponseError(f"headers must be a mapping, got {type(headers).__name__}")

    for name, value in headers.items():
        if not isinstance(name, str) or not _TOKEN.match(name):
            raise InvalidResponseError(f"invalid header name {name!r}")
        if name.lower() == "status":
            raise InvalidResponseError("headers must not contain 'Status'; return it as the first element")
        if name.lower() in HOP_BY_HOP:
            raise InvalidResponseError(f"hop-by-hop header {name!r} is set by the server, not the handler")
        if not isinstance(value, str):
            raise InvalidResponseError(
                f"header {name!r} value must be a str, got {type(value).__name__}"
            )
        if "\r" in value or "\n" in value:
            raise InvalidResponseError(f"header {name!r} value contains a line break")
        try:
            value.encode("latin-1")
        except UnicodeEncodeError:
            raise InvalidResponseError(
                f"header {name!r} value {value!r} has characters outside latin-1"
            ) from None


def collect_body(body: Any) -> list:
    """Iterate the body once, checking every chunk."""
    if isinstance(body, (str, bytes)):
        raise InvalidResponseError(
            "body must be an iterable of chunks, not a single "
            f"{type(body).__name__}; wrap it in a list: [body]"
        )
    try:
        iterator = iter(body)
    except TypeError:
        raise InvalidResponseError(f"body must be iterable, got {type(body).__name__}") from None

    chunks = []
    try:
        for chunk in iterator:
            if not isinstance(chunk, (str, bytes)):
                raise InvalidResponseError(
                    f"body chunks must be str or bytes, got {type(chunk).__name__}"
                )
            chunks.append(chunk)
    finally:
        close = getattr(body, "close", None)
        if callable(close):
            close()
    return chunks
