"""
=============================================================================
STATUS CODES: THE FIRST ELEMENT OF THE TRIPLE
=============================================================================

A handler answers with a plain integer:

    return [200, {"Content-Type": "text/html"}, ["Hello World"]]
            ───
             └── this number is all the handler has to say about success

The hosting server turns that integer into the status line on the wire,
and for that it needs a REASON PHRASE:

    HTTP/1.1 200 OK
             ─── ──
              │   └── reason phrase (looked up here)
              └────── status code (chosen by the handler)

=============================================================================
WHAT COUNTS AS A VALID STATUS?
=============================================================================

    ┌────────┬──────────────────────────────────────────────────────────┐
    │ 1xx    │ Informational - no body allowed                          │
    │ 2xx    │ Success         (204 No Content: no body allowed)        │
    │ 3xx    │ Redirection     (304 Not Modified: no body allowed)      │
    │ 4xx    │ Client error                                             │
    │ 5xx    │ Server error    (500 is what the server sends when the   │
    │        │                  handler raises)                         │
    └────────┴──────────────────────────────────────────────────────────┘

Any integer from 100 to 599 is a valid status, even ones without a
registered phrase (e.g. 299). Those get a generic phrase from their class.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    Status codes used by the lesson and the hosting server.

    Because this is an IntEnum, a handler can return either form:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    # 1xx
    CONTINUE = 100
    SWITCHING_PROTOCOLS = 101

    # 2xx
    OK = 200
    CREATED = 201
    ACCEPTED = 202
    NO_CONTENT = 204

    # 3xx
    MOVED_PERMANENTLY = 301
    FOUND = 302
    SEE_OTHER = 303
    NOT_MODIFIED = 304
    TEMPORARY_REDIRECT = 307
    PERMANENT_REDIRECT = 308

    # 4xx
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    LENGTH_REQUIRED = 411
    PAYLOAD_TOO_LARGE = 413
    URI_TOO_LONG = 414
    REQUEST_HEADER_FIELDS_TOO_LARGE = 431

    # 5xx
    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503
    GATEWAY_TIMEOUT = 504
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line."""
        return _STATUS_PHRASES[self]

    @property
    def allows_body(self) -> bool:
        """False for 1xx, 204 and 304, which must never carry a body."""
        return status_allows_body(self)


_STATUS_PHRASES = {
    HTTPStatus.CONTINUE: "Continue",
    HTTPStatus.SWITCHING_PROTOCOLS: "Switching Protocols",
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.ACCEPTED: "Accepted",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.MOVED_PERMANENTLY: "Moved Permanently",
    HTTPStatus.FOUND: "Found",
    HTTPStatus.SEE_OTHER: "See Other",
    HTTPStatus.NOT_MODIFIED: "Not Modified",
    HTTPStatus.TEMPORARY_REDIRECT: "Temporary Redirect",
    HTTPStatus.PERMANENT_REDIRECT: "Permanent Redirect",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.UNAUTHORIZED: "Unauthorized",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.LENGTH_REQUIRED: "Length Required",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.URI_TOO_LONG: "URI Too Long",
    HTTPStatus.REQUEST_HEADER_FIELDS_TOO_LARGE: "Request Header Fields Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.NOT_IMPLEMENTED: "Not Implemented",
    HTTPStatus.BAD_GATEWAY: "Bad Gateway",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.GATEWAY_TIMEOUT: "Gateway Timeout",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}

# Fallback phrases for codes we don't list, keyed by the first digit
_CLASS_PHRASES = {
    1: "Informational",
    2: "Success",
    3: "Redirection",
    4: "Client Error",
    5: "Server Error",
}


def is_valid_status(code) -> bool:
    """
    True if ``code`` can be the first element of a Response Triple.

    bool is rejected explicitly: ``True`` is an int in Python, but a
    handler returning ``[True, ...]`` is a bug, not status 1.
    """
    return isinstance(code, int) and not isinstance(code, bool) and 100 <= code <= 599


def status_allows_body(code: int) -> bool:
    """1xx, 204 and 304 responses end at the blank line after the headers."""
    return not (100 <= code < 200 or code in (204, 304))


def reason_phrase(code: int) -> str:
    """
    Reason phrase for any valid status code.

    Registered codes get their real phrase; anything else in range gets
    "Unknown <class>", e.g. ``reason_phrase(299) == "Unknown Success"``.
    """
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return f"Unknown {_CLASS_PHRASES.get(code // 100, 'Status')}"
