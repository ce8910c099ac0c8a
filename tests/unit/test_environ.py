"""
Unit tests for building the request environment.
"""

import pytest

from pyrack.environ import build_environ, header_key, make_environ, split_host
from pyrack.http.request import parse_request


class TestHeaderKey:

    @pytest.mark.parametrize("name, key", [
        ("User-Agent", "HTTP_USER_AGENT"),
        ("accept", "HTTP_ACCEPT"),
        ("X-Request-Id", "HTTP_X_REQUEST_ID"),
        ("Content-Type", "CONTENT_TYPE"),
        ("content-length", "CONTENT_LENGTH"),
    ])
    def test_keys(self, name, key):
        assert header_key(name) == key


class TestSplitHost:

    def test_no_header_uses_bind_address(self):
        assert split_host("", "127.0.0.1", 9292) == ("127.0.0.1", "9292")

    def test_name_only(self):
        assert split_host("example.com", "127.0.0.1", 9292) == ("example.com", "9292")

    def test_name_and_port(self):
        assert split_host("example.com:8080", "127.0.0.1", 9292) == ("example.com", "8080")

    def test_ipv6(self):
        assert split_host("[::1]:9393", "127.0.0.1", 9292) == ("::1", "9393")
        assert split_host("[::1]", "127.0.0.1", 9292) == ("::1", "9292")


class TestBuildEnviron:
    """Tests for build_environ."""

    def test_cgi_keys(self, sample_get_request: bytes):
        request = parse_request(sample_get_request, ("10.0.0.7", 50000))
        environ = build_environ(request, "127.0.0.1", 9292)

        assert environ["REQUEST_METHOD"] == "GET"
        assert environ["SCRIPT_NAME"] == ""
        assert environ["PATH_INFO"] == "/greet"
        assert environ["QUERY_STRING"] == "name=Ada&lang=en"
        assert environ["SERVER_NAME"] == "localhost"
        assert environ["SERVER_PORT"] == "9292"
        assert environ["SERVER_PROTOCOL"] == "HTTP/1.1"
        assert environ["REMOTE_ADDR"] == "10.0.0.7"

    def test_headers(self, sample_get_request: bytes):
        environ = build_environ(parse_request(sample_get_request), "127.0.0.1", 9292)

        assert environ["HTTP_USER_AGENT"] == "pytest"
        assert environ["HTTP_ACCEPT"] == "text/html"
        assert environ["HTTP_HOST"] == "localhost:9292"

    def test_pyrack_keys(self, sample_get_request: bytes):
        environ = build_environ(parse_request(sample_get_request), "127.0.0.1", 9292)

        assert environ["pyrack.version"] == (1, 0)
        assert environ["pyrack.url_scheme"] == "http"
        assert environ["pyrack.multithread"] is True
        assert environ["pyrack.run_once"] is False
        assert hasattr(environ["pyrack.errors"], "write")

    def test_body_and_content_headers(self, sample_post_request: bytes):
        environ = build_environ(parse_request(sample_post_request), "127.0.0.1", 9292)

        assert environ["CONTENT_TYPE"] == "application/x-www-form-urlencoded"
        assert environ["CONTENT_LENGTH"] == "16"
        assert "HTTP_CONTENT_TYPE" not in environ
        assert environ["pyrack.input"].read() == b"name=Ada&lang=en"

    def test_fresh_dict_per_request(self, sample_get_request: bytes):
        request = parse_request(sample_get_request)
        first = build_environ(request, "127.0.0.1", 9292)
        second = build_environ(request, "127.0.0.1", 9292)

        assert first is not second
        assert first["pyrack.input"] is not second["pyrack.input"]


class TestMakeEnviron:
    """Tests for make_environ."""

    def test_defaults(self):
        environ = make_environ()

        assert environ["REQUEST_METHOD"] == "GET"
        assert environ["PATH_INFO"] == "/"
        assert environ["QUERY_STRING"] == ""
        assert environ["SERVER_NAME"] == "localhost"
        assert environ["SERVER_PORT"] == "9292"
        assert environ["REMOTE_ADDR"] == "127.0.0.1"
        assert environ["pyrack.input"].read() == b""
        assert "CONTENT_LENGTH" not in environ

    def test_target_split(self):
        environ = make_environ("/hello%20there?a=1&b=2")

        assert environ["PATH_INFO"] == "/hello there"
        assert environ["QUERY_STRING"] == "a=1&b=2"

    def test_path_decoded_like_the_parser(self):
        """%XX in PATH_INFO means the same thing with or without a socket."""
        built = make_environ("/caf%E9")["PATH_INFO"]
        parsed = parse_request(b"GET /caf%E9 HTTP/1.1\r\n\r\n").path

        assert built == parsed == "/caf\xe9"

    def test_method_upper_cased(self):
        assert make_environ(method="post")["REQUEST_METHOD"] == "POST"

    def test_body_sets_content_length(self):
        environ = make_environ("/", method="POST", body=b"x=1",
                               headers={"Content-Type": "application/x-www-form-urlencoded"})

        assert environ["CONTENT_LENGTH"] == "3"
        assert environ["CONTENT_TYPE"] == "application/x-www-form-urlencoded"
        assert environ["pyrack.input"].read() == b"x=1"

    def test_headers(self):
        environ = make_environ(headers={"Accept": "text/html", "X-Trace": "abc"})

        assert environ["HTTP_ACCEPT"] == "text/html"
        assert environ["HTTP_X_TRACE"] == "abc"
