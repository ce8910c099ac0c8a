"""
Unit tests for the hosting server's handler-facing side.

These call Server.respond() directly; no socket is opened.
"""

import logging

import pytest

from pyrack.apps import HelloWorld, PrettyHello
from pyrack.config import ServerConfig
from pyrack.environ import make_environ
from pyrack.handler import Response
from pyrack.http.request import HTTPRequest
from pyrack.server import Server, format_access_line, startup_banner


def server_for(handler, **overrides) -> Server:
    return Server(handler, ServerConfig(min_workers=1, max_workers=1, **overrides))


class TestConstruction:

    def test_rejects_non_callable(self):
        with pytest.raises(TypeError):
            Server("Hello World")

    def test_validates_config(self):
        with pytest.raises(ValueError):
            Server(HelloWorld(), ServerConfig(port=0))

    def test_default_config(self):
        assert Server(HelloWorld()).config.port == 9292


class TestRespond:
    """Tests for Server.respond."""

    def test_hello_world(self):
        response = server_for(HelloWorld()).respond(make_environ("/"))
        assert response == Response(200, {"Content-Type": "text/html"}, ["Hello World"])

    def test_pretty_hello(self):
        response = server_for(PrettyHello(clock=lambda: 7)).respond(make_environ("/"))
        assert response.body == ["<strong>Hello</strong>"]

    def test_exception_becomes_500(self, caplog):
        def boom(environ):
            raise RuntimeError("kaboom")

        with caplog.at_level(logging.ERROR, logger="pyrack.server"):
            response = server_for(boom).respond(make_environ("/explode"))

        assert response.status == 500
        assert response.headers["Content-Type"] == "text/plain; charset=utf-8"
        assert response.body == ["Internal Server Error\n"]
        assert "kaboom" in caplog.text
        assert "/explode" in caplog.text

    def test_traceback_not_in_body(self):
        def boom(environ):
            raise RuntimeError("secret detail")

        response = server_for(boom).respond(make_environ("/"))
        assert "secret detail" not in "".join(response.body)

    @pytest.mark.parametrize("result", [
        None,
        [200, {"Content-Type": "text/html"}],
        [200, {"Content-Type": "text/html"}, "Hello World"],
        [99, {"Content-Type": "text/html"}, ["x"]],
        [200, {}, ["no content type"]],
    ])
    def test_invalid_triple_becomes_500(self, result):
        response = server_for(lambda environ: result).respond(make_environ("/"))
        assert response.status == 500

    def test_without_lint_missing_content_type_passes(self):
        server = server_for(lambda environ: (200, {}, ["x"]), lint=False)
        assert server.respond(make_environ("/")) == (200, {}, ["x"])

    def test_without_lint_string_body_still_500(self):
        server = server_for(lambda environ: (200, {}, "x"), lint=False)
        assert server.respond(make_environ("/")).status == 500

    def test_handler_sees_the_environ(self):
        seen = {}

        def spy(environ):
            seen.update(environ)
            return (204, {}, [])

        server_for(spy).respond(make_environ("/look?x=1", method="DELETE"))

        assert seen["REQUEST_METHOD"] == "DELETE"
        assert seen["PATH_INFO"] == "/look"
        assert seen["QUERY_STRING"] == "x=1"


class TestAccessLine:

    def test_common_log_format(self):
        request = HTTPRequest(method="GET", path="/greet", query_string="name=Ada",
                              client_address=("10.0.0.7", 5000))
        line = format_access_line(request, 200, 14, 0.0003)

        assert line.startswith("10.0.0.7 - - [")
        assert '"GET /greet?name=Ada HTTP/1.1" 200 14 0.0003' in line

    def test_empty_body_logged_as_dash(self):
        request = HTTPRequest(method="HEAD", path="/", client_address=("127.0.0.1", 5000))
        assert '"HEAD / HTTP/1.1" 204 - ' in format_access_line(request, 204, 0, 0.1)


class TestStartupBanner:

    def test_mentions_handler_and_url(self):
        lines = startup_banner(HelloWorld(), ServerConfig())
        text = "\n".join(lines)

        assert "PyRack/1.0 serving pyrack.apps.HelloWorld" in text
        assert "http://127.0.0.1:9292/" in text

    def test_box_lines_have_equal_width(self):
        lines = startup_banner(PrettyHello(), ServerConfig(port=3000))
        assert len({len(line) for line in lines}) == 1
