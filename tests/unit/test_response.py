"""
Unit tests for response serialization.
"""

from datetime import datetime, timezone

from pyrack.handler import Response
from pyrack.http.response import (
    encode_body,
    error_response,
    format_http_date,
    serialize_response,
)


def split(data: bytes):
    head, _, body = data.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    headers = dict(line.split(": ", 1) for line in lines[1:])
    return lines[0], headers, body


class TestSerializeResponse:
    """Tests for serialize_response."""

    def test_status_line(self):
        """Test status line generation."""
        status_line, _, _ = split(serialize_response(Response(200, {"Content-Type": "text/html"}, ["x"])))
        assert status_line == "HTTP/1.1 200 OK"

        status_line, _, _ = split(serialize_response(Response(404, {"Content-Type": "text/html"}, ["x"])))
        assert status_line == "HTTP/1.1 404 Not Found"

    def test_unregistered_status_gets_class_phrase(self):
        status_line, _, _ = split(serialize_response(Response(299, {}, [])))
        assert status_line == "HTTP/1.1 299 Unknown Success"

    def test_hello_world_on_the_wire(self):
        """The lesson's triple becomes a complete HTTP response."""
        data = serialize_response(Response(200, {"Content-Type": "text/html"}, ["Hello World"]))
        status_line, headers, body = split(data)

        assert status_line == "HTTP/1.1 200 OK"
        assert headers["Content-Type"] == "text/html"
        assert headers["Content-Length"] == "11"
        assert headers["Server"] == "PyRack/1.0"
        assert headers["Connection"] == "close"
        assert "Date" in headers
        assert body == b"Hello World"

    def test_chunks_are_concatenated_in_order(self):
        data = serialize_response(Response(200, {"Content-Type": "text/plain"}, ["a", b"b", "c"]))
        _, headers, body = split(data)

        assert body == b"abc"
        assert headers["Content-Length"] == "3"

    def test_content_length_counts_utf8_bytes(self):
        data = serialize_response(Response(200, {"Content-Type": "text/plain"}, ["héllo"]))
        _, headers, body = split(data)

        assert headers["Content-Length"] == "6"
        assert body == "héllo".encode("utf-8")

    def test_handler_content_length_kept(self):
        data = serialize_response(Response(200, {"Content-Type": "text/plain", "Content-Length": "2"}, ["ok"]))
        assert data.count(b"Content-Length") == 1

    def test_head_omits_body_but_keeps_length(self):
        data = serialize_response(Response(200, {"Content-Type": "text/html"}, ["Hello World"]), head=True)
        _, headers, body = split(data)

        assert headers["Content-Length"] == "11"
        assert body == b""

    def test_no_body_statuses(self):
        data = serialize_response(Response(204, {}, []))
        _, headers, body = split(data)

        assert "Content-Length" not in headers
        assert body == b""

    def test_keep_alive_headers(self):
        data = serialize_response(
            Response(200, {"Content-Type": "text/html", "Connection": "close"}, ["x"]),
            keep_alive=True,
            keep_alive_timeout=5.0,
        )
        _, headers, _ = split(data)

        assert headers["Connection"] == "keep-alive"
        assert headers["Keep-Alive"] == "timeout=5"

    def test_handler_transfer_encoding_dropped(self):
        """Bodies are always framed by Content-Length."""
        data = serialize_response(
            Response(200, {"Content-Type": "text/html", "Transfer-Encoding": "chunked"}, ["x"]),
        )
        _, headers, body = split(data)

        assert "Transfer-Encoding" not in headers
        assert headers["Content-Length"] == "1"
        assert body == b"x"

    def test_does_not_modify_handler_headers(self):
        headers = {"Content-Type": "text/html"}
        serialize_response(Response(200, headers, ["x"]))
        assert headers == {"Content-Type": "text/html"}

    def test_custom_server_name(self):
        _, headers, _ = split(serialize_response(Response(200, {}, []), server_name="Test/0.1"))
        assert headers["Server"] == "Test/0.1"


class TestHelpers:

    def test_encode_body(self):
        assert encode_body(["Hello", " ", b"World"]) == b"Hello World"
        assert encode_body([]) == b""

    def test_error_response(self):
        response = error_response(500)

        assert response.status == 500
        assert response.headers["Content-Type"] == "text/plain; charset=utf-8"
        assert list(response.body) == ["Internal Server Error\n"]

    def test_error_response_with_message(self):
        assert error_response(400, "Bad header").body == ["Bad header\n"]

    def test_format_http_date(self):
        """Test HTTP date formatting."""
        dt = datetime(1994, 11, 6, 8, 49, 37, tzinfo=timezone.utc)
        assert format_http_date(dt) == "Sun, 06 Nov 1994 08:49:37 GMT"
