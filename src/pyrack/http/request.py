"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw bytes a client sent into an HTTPRequest the server can build
an environ from. The handler never sees these bytes or this class; it only
sees the environ dict (see pyrack/environ.py).

=============================================================================
FROM BYTES TO ENVIRON
=============================================================================

    b"GET /greet?name=Ada HTTP/1.1\\r\\n"      ┐
    b"Host: localhost:9292\\r\\n"              │  raw bytes
    b"Accept: text/html\\r\\n"                 │  (Connection.read_request)
    b"\\r\\n"                                  ┘
            │
            ▼  RequestParser.parse()
    HTTPRequest(method="GET", path="/greet",
                query_string="name=Ada",
                headers={"host": "localhost:9292", "accept": "text/html"})
            │
            ▼  build_environ()
    {"REQUEST_METHOD": "GET", "PATH_INFO": "/greet",
     "QUERY_STRING": "name=Ada", "HTTP_ACCEPT": "text/html", ...}

Note that the QUERY STRING is kept raw. Decoding "a=1&a=2" into a dict is
a choice a framework makes; the contract just passes the string through.

=============================================================================
WHAT CAN GO WRONG
=============================================================================

    ┌──────────────────────────────────────────┬───────────────────────┐
    │ Problem                                  │ Status sent back      │
    ├──────────────────────────────────────────┼───────────────────────┤
    │ no blank line after headers              │ 400 Bad Request       │
    │ request line isn't METHOD SP URI SP VER  │ 400 Bad Request       │
    │ Content-Length isn't a number            │ 400 Bad Request       │
    │ body shorter than Content-Length         │ 400 Bad Request       │
    │ method we don't know                     │ 405 Method Not Allowed│
    │ request bigger than max_request_size     │ 413 Payload Too Large │
    │ Transfer-Encoding (chunked uploads)      │ 501 Not Implemented   │
    │ anything but HTTP/1.0 or HTTP/1.1        │ 505 Version Not Supp. │
    └──────────────────────────────────────────┴───────────────────────┘

These are the hosting server's errors, answered before any handler runs.

=============================================================================
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import unquote


class HTTPParseError(Exception):
    """
    The request bytes could not be understood.

    Carries the status code the server should answer with, so the
    connection loop doesn't need to know why parsing failed.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed request, one step before becoming an environ.

    Header names are stored lowercase (HTTP header names are
    case-insensitive), values as sent.
    """

    method: str
    path: str
    query_string: str = ""
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    client_address: tuple = ("", 0)
    raw: bytes = field(default=b"", repr=False)

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int:
        try:
            return int(self.headers.get("content-length", 0))
        except ValueError:
            return 0

    @property
    def host(self) -> str:
        return self.headers.get("host", "")

    @property
    def is_keep_alive(self) -> bool:
        """
        HTTP/1.1 keeps the connection open unless told "close";
        HTTP/1.0 closes it unless told "keep-alive".
        """
        connection = self.headers.get("connection", "").lower()
        if self.version == "HTTP/1.1":
            return connection != "close"
        return connection == "keep-alive"

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)


class RequestParser:
    """
    Parses one complete request (as returned by Connection.read_request).

        parser = RequestParser(max_request_size=1024 * 1024)
        request = parser.parse(raw_bytes, ("127.0.0.1", 50312))
    """

    VALID_METHODS = {
        "GET", "HEAD", "POST", "PUT", "DELETE",
        "PATCH", "OPTIONS", "TRACE", "CONNECT",
    }

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:\s]+):[ \t]*(.*?)[ \t]*$")
    # ASCII digits only; str.isdigit() would also accept "²"
    CONTENT_LENGTH_PATTERN = re.compile(r"^[0-9]+$")

    def __init__(self, max_request_size: int = 10 * 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(self, data: bytes, client_address: tuple = ("", 0)) -> HTTPRequest:
        """
        Parse raw request bytes.

        Raises:
            HTTPParseError: with the status code to answer (see module docs).
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(f"Request too large: {len(data)} bytes", status_code=413)

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        # Header bytes are ISO-8859-1 per RFC 7230; it never fails to decode
        header_section = data[:header_end].decode("latin-1")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        method, path, query_string, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        if "transfer-encoding" in headers:
            raise HTTPParseError("Transfer-Encoding is not supported", status_code=501)

        content_length = self._content_length(headers)
        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        return HTTPRequest(
            method=method,
            path=path,
            query_string=query_string,
            version=version,
            headers=headers,
            body=body[:content_length],
            client_address=client_address,
            raw=data,
        )

    def _parse_request_line(self, line: str) -> tuple:
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, target, version = match.groups()

        if method not in self.VALID_METHODS:
            raise HTTPParseError(f"Invalid method: {method}", status_code=405)

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(f"Unsupported HTTP version: {version}", status_code=505)

        # Absolute-form targets ("GET http://host/path HTTP/1.1") come from proxies
        if "://" in target:
            target = "/" + target.split("://", 1)[1].partition("/")[2]

        raw_path, _, query_string = target.partition("?")
        raw_path = raw_path.split("#", 1)[0]
        path = unquote(raw_path, encoding="latin-1") or "/"
        if not path.startswith("/"):
            path = "/" + path

        return method, path, query_string, version

    def _parse_headers(self, lines: list) -> Dict[str, str]:
        """
        "Name: value" lines into a lowercase-keyed dict.

        Repeated headers are joined with ", " (RFC 7230 §3.2.2); obsolete
        folded continuation lines are appended to the previous value.
        """
        headers: Dict[str, str] = {}
        current_name = None

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if current_name is not None:
                    headers[current_name] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                raise HTTPParseError(f"Malformed header line: {line!r}")

            name, value = match.groups()
            name = name.lower()
            current_name = name

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers

    @staticmethod
    def _content_length(headers: Dict[str, str]) -> int:
        value = headers.get("content-length")
        if value is None:
            return 0
        value = value.strip()
        if not RequestParser.CONTENT_LENGTH_PATTERN.match(value):
            raise HTTPParseError(f"Invalid Content-Length: {value!r}")
        return int(value)


def parse_request(
    data: bytes,
    client_address: tuple = ("", 0),
    max_size: int = 10 * 1024 * 1024,
) -> HTTPRequest:
    """One-shot helper around RequestParser."""
    return RequestParser(max_request_size=max_size).parse(data, client_address)
