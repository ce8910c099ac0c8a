"""
=============================================================================
PYRACK - THE SMALLEST CONTRACT BETWEEN A SERVER AND AN APP
=============================================================================

Before we get to the complexity of a full web framework, this package
teaches the one agreement underneath all of them:

    handler(environ) -> (status, headers, body)

A handler is any callable that takes a request environment (a dict) and
returns a three-part answer: an integer status, a dict of headers, and an
iterable of body chunks. A hosting server does everything else.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    pyrack/
    ├── __init__.py       # This file - package exports
    ├── __main__.py       # The "pyrack" launcher (python -m pyrack)
    ├── handler.py        # The contract: Response triple, Handler base class
    ├── apps.py           # Teaching handlers: HelloWorld, PrettyHello
    ├── environ.py        # Building the environ dict (and make_environ)
    ├── lint.py           # Checking a triple against the contract
    ├── descriptor.py     # Loading rackup.py: which handler to serve
    ├── server.py         # The hosting server
    ├── config.py         # ServerConfig dataclass
    ├── core/             # Sockets, connections, thread pool
    └── http/             # Request parsing, response serialization

=============================================================================
QUICK START
=============================================================================

    # hello.py
    def hello(environ):
        return [200, {"Content-Type": "text/html"}, ["Hello World"]]

    # Call it directly - no server needed
    from pyrack import make_environ
    status, headers, body = hello(make_environ("/"))

    # Or serve it
    from pyrack import Server
    Server(hello).run()          # http://127.0.0.1:9292/

=============================================================================
"""

__version__ = "1.0.0"

from .handler import Response, Handler, is_handler
from .environ import make_environ
from .lint import validate_response, InvalidResponseError
from .config import ServerConfig
from .server import Server
from .descriptor import load_descriptor, DescriptorError

__all__ = [
    "Response",
    "Handler",
    "is_handler",
    "make_environ",
    "validate_response",
    "InvalidResponseError",
    "ServerConfig",
    "Server",
    "load_descriptor",
    "DescriptorError",
    "__version__",
]
