"""
Unit tests for the teaching handlers.
"""

from pyrack.apps import (
    EVEN_BODY,
    HELLO_BODY,
    ODD_BODY,
    HelloWorld,
    PrettyHello,
    hello_world,
)
from pyrack.environ import make_environ
from pyrack.lint import validate_response


class TestHelloWorld:
    """Tests for the constant responder."""

    def test_triple(self):
        status, headers, body = HelloWorld()(make_environ("/"))

        assert status == 200
        assert headers == {"Content-Type": "text/html"}
        assert list(body) == ["Hello World"]
        assert HELLO_BODY == "Hello World"

    def test_ignores_the_request(self):
        app = HelloWorld()
        first = app(make_environ("/"))
        second = app(make_environ("/anything?x=1", method="POST", body=b"data"))

        assert first == second

    def test_fresh_values_every_call(self):
        app = HelloWorld()
        first = app(make_environ("/"))
        first.headers["X-Changed"] = "yes"
        first.body.append("!")

        second = app(make_environ("/"))
        assert second.headers == {"Content-Type": "text/html"}
        assert second.body == ["Hello World"]

    def test_function_form(self):
        assert hello_world(make_environ("/")) == HelloWorld()(make_environ("/"))

    def test_passes_lint(self):
        validate_response(HelloWorld()(make_environ("/")))


class TestPrettyHello:
    """Tests for the time-parity responder."""

    def test_even_second(self):
        app = PrettyHello(clock=lambda: 1_700_000_000)
        status, headers, body = app(make_environ("/"))

        assert status == 200
        assert headers == {"Content-Type": "text/html"}
        assert body == ["<em>Hello</em>"]
        assert body == [EVEN_BODY]

    def test_odd_second(self):
        app = PrettyHello(clock=lambda: 1_700_000_001)
        assert app(make_environ("/")).body == ["<strong>Hello</strong>"]
        assert ODD_BODY == "<strong>Hello</strong>"

    def test_fractional_seconds_are_truncated(self):
        assert PrettyHello(clock=lambda: 1_700_000_000.9).pretty_response() == [EVEN_BODY]
        assert PrettyHello(clock=lambda: 1_700_000_001.1).pretty_response() == [ODD_BODY]

    def test_always_three_elements(self):
        for now in range(10):
            response = PrettyHello(clock=lambda: now)(make_environ("/"))
            assert len(response) == 3
            assert len(response.body) == 1

    def test_follows_the_clock(self):
        ticks = iter([10, 11, 12])
        app = PrettyHello(clock=lambda: next(ticks))

        bodies = [app(make_environ("/")).body[0] for _ in range(3)]
        assert bodies == [EVEN_BODY, ODD_BODY, EVEN_BODY]

    def test_default_clock_is_wall_time(self):
        body = PrettyHello()(make_environ("/")).body
        assert body in ([EVEN_BODY], [ODD_BODY])

    def test_passes_lint(self):
        validate_response(PrettyHello(clock=lambda: 3)(make_environ("/")))
