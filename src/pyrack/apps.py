"""
=============================================================================
TEACHING HANDLERS
=============================================================================

Two tiny handlers to copy, paste and poke at. Neither one reads the
environ; they exist to show the SHAPE of an answer, not how to inspect a
request.

    ┌────────────────┬────────────────────────────────────────────────────┐
    │ HelloWorld     │ Always the same triple                             │
    │ hello_world    │ The same thing written as a plain function         │
    │ PrettyHello    │ Picks one of two bodies from the current second    │
    └────────────────┴────────────────────────────────────────────────────┘

Try them without any server at all:

    >>> from pyrack.apps import HelloWorld
    >>> from pyrack.environ import make_environ
    >>> HelloWorld()(make_environ("/"))
    Response(status=200, headers={'Content-Type': 'text/html'}, body=['Hello World'])

Then serve one (see examples/hello_rackup.py):

    $ pyrack examples/hello_rackup.py
    $ curl -i http://127.0.0.1:9292/

=============================================================================
"""

import time
from typing import Callable, Optional

from .handler import Environ, Handler, Response


HELLO_BODY = "Hello World"
EVEN_BODY = "<em>Hello</em>"
ODD_BODY = "<strong>Hello</strong>"


class HelloWorld(Handler):
    """
    The constant responder.

    Every call returns status 200, an HTML content type and the same body.
    Note that the headers dict and body list are built fresh each time:
    the server may add headers to what we return, and we never want one
    request's response to leak into the next.
    """

    def call(self, environ: Environ) -> Response:
        return Response(200, {"Content-Type": "text/html"}, [HELLO_BODY])


def hello_world(environ: Environ) -> Response:
    """HelloWorld without the class. Any callable is a handler."""
    return Response(200, {"Content-Type": "text/html"}, [HELLO_BODY])


class PrettyHello(Handler):
    """
    The time-parity responder.

    Looks at the current Unix time in whole seconds:

        even second  →  <em>Hello</em>
        odd second   →  <strong>Hello</strong>

    Reload the page a few times and the greeting flips between italic and
    bold. Status and Content-Type never change, only the body does.

    The clock is a constructor argument so tests can pin it:

        PrettyHello(clock=lambda: 1_700_000_000)   # always even

    Reading the wall clock is safe from many threads at once, so one
    instance can serve every request.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self.clock = clock or time.time

    def call(self, environ: Environ) -> Response:
        return Response(200, {"Content-Type": "text/html"}, self.pretty_response())

    def pretty_response(self) -> list:
        """The body for the current second."""
        if int(self.clock()) % 2 == 0:
            return [EVEN_BODY]
        return [ODD_BODY]
