"""
=============================================================================
THE HANDLER CONTRACT
=============================================================================

Before we get to the complexity of a full web framework, let's look at
the one agreement every Python web stack is built on. A server and an
application only need to agree on this:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │        handler(environ)  ──────►  (status, headers, body)            │
    │                                                                      │
    │   environ   a dict describing ONE request (method, path, headers…)  │
    │   status    an int, e.g. 200                                         │
    │   headers   a dict of str → str, e.g. {"Content-Type": "text/html"}  │
    │   body      an iterable of string chunks, e.g. ["Hello World"]      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

That's it. No base class to inherit, no decorator to apply, no framework
to import. A function works:

    def hello(environ):
        return [200, {"Content-Type": "text/html"}, ["Hello World"]]

So does any object with a __call__ method. We call that three-part answer
the RESPONSE TRIPLE.

=============================================================================
WHO DOES WHAT?
=============================================================================

    ┌──────────────────────────┐          ┌──────────────────────────┐
    │     HOSTING SERVER       │          │        HANDLER           │
    ├──────────────────────────┤          ├──────────────────────────┤
    │ accept TCP connections   │          │ look at environ          │
    │ parse HTTP bytes         │ environ  │ decide status            │
    │ build environ            │ ───────► │ build headers            │
    │ call handler             │          │ produce body chunks      │
    │ turn exceptions into 500 │ ◄─────── │                          │
    │ write bytes to socket    │  triple  │ (may raise; not its job  │
    │                          │          │  to turn that into a 500)│
    └──────────────────────────┘          └──────────────────────────┘

The handler is called once per request, synchronously, with a fresh
environ. It must return quickly and must not keep state between calls that
another thread could trip over.

=============================================================================
WHY AN ITERABLE BODY AND NOT A STRING?
=============================================================================

A list of chunks lets a handler build the body piece by piece (or stream
it from a generator) without joining strings. The server just writes the
chunks in order:

    body = ["<h1>", "Hello", "</h1>"]   →   <h1>Hello</h1>

The classic mistake is returning a bare string:

    return [200, {...}, "Hello"]        →   iterates "H", "e", "l", ...

It happens to "work" but sends one chunk per character. The lint module
rejects it.

=============================================================================
"""

from typing import Any, Callable, Dict, Iterable, NamedTuple, Union


Environ = Dict[str, Any]
Headers = Dict[str, str]
Body = Iterable[Union[str, bytes]]


class Response(NamedTuple):
    """
    The Response Triple.

    A NamedTuple is still a tuple, so everything the contract promises
    holds for free:

        >>> r = Response(200, {"Content-Type": "text/html"}, ["Hi"])
        >>> len(r)
        3
        >>> status, headers, body = r
        >>> r.status
        200

    Handlers are free to return a plain list or tuple instead; the server
    normalises whatever comes back into one of these.
    """

    status: int
    headers: Headers
    body: Body


HandlerFunc = Callable[[Environ], Any]


class Handler:
    """
    Optional base class for class-based handlers.

    Subclasses implement ``call``; instances are then callable like any
    function handler. This mirrors how many frameworks expose an app
    object with a single entry point:

        class Greeter(Handler):
            def call(self, environ):
                return Response(200, {"Content-Type": "text/plain"}, ["hi"])

        greeter = Greeter()
        greeter(environ)        # same as greeter.call(environ)

    Inheriting from this class is never required. The server only checks
    that the handler is callable.
    """

    def call(self, environ: Environ) -> Response:
        raise NotImplementedError(f"{type(self).__name__} must implement call(environ)")

    def __call__(self, environ: Environ) -> Response:
        return self.call(environ)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"


def is_handler(obj: Any) -> bool:
    """Anything callable can be a handler."""
    return callable(obj)


def handler_name(handler: HandlerFunc) -> str:
    """
    Human-readable name for banners and log lines.

    Functions and classes report their qualified name; instances report
    their class name.
    """
    name = getattr(handler, "__qualname__", None)
    if name is None:
        name = type(handler).__qualname__
    module = getattr(handler, "__module__", None) or type(handler).__module__
    if module and module not in ("__main__", "builtins", "__rackup__"):
        return f"{module}.{name}"
    return name
