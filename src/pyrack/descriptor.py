"""
=============================================================================
THE STARTUP DESCRIPTOR
=============================================================================

The launcher needs to know WHICH handler to serve. We tell it with a tiny
Python file, by convention called rackup.py:

    ┌─ rackup.py ─────────────────────────────────────────────────────────┐
    │ #\\ -p 8080                                                          │
    │ from my_server import MyServer                                       │
    │                                                                      │
    │ run(MyServer())                                                      │
    └──────────────────────────────────────────────────────────────────────┘

    $ pyrack rackup.py

Two things are special in this file:

    run(handler)   provided by the launcher, not imported. Call it exactly
                   once with the handler to serve.

    #\\ ...         if the FIRST line starts with "#\\", the rest of the line
                   is read as launcher options, as if typed after "pyrack".
                   Handy for giving a lesson its own port.

Everything else is ordinary Python, run top to bottom with runpy. While it
runs, the directory the descriptor lives in is on sys.path, so
"from my_server import ..." finds a my_server.py sitting next to it.

=============================================================================
"""

import contextlib
import logging
import os
import runpy
import shlex
import sys
from dataclasses import dataclass, field
from typing import List

from .handler import Handler, HandlerFunc, is_handler


logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTOR = "rackup.py"
OPTIONS_PREFIX = "#\\"
DESCRIPTOR_MODULE = "__rackup__"


class DescriptorError(Exception):
    """The descriptor file is missing, broken, or doesn't name a handler."""


@dataclass
class Descriptor:
    """What a descriptor file boils down to."""

    handler: HandlerFunc
    path: str
    options: List[str] = field(default_factory=list)


def parse_options_line(source: str) -> List[str]:
    """
    Launcher options from the first line, if it's an options line.

        >>> parse_options_line("#\\\\ -p 8080 --host 0.0.0.0\\nrun(app)\\n")
        ['-p', '8080', '--host', '0.0.0.0']

    Raises:
        DescriptorError: if the line can't be split (e.g. an open quote).
    """
    first_line = source.split("\n", 1)[0].rstrip("\r")
    if not first_line.startswith(OPTIONS_PREFIX):
        return []
    try:
        return shlex.split(first_line[len(OPTIONS_PREFIX):])
    except ValueError as e:
        raise DescriptorError(f"Invalid options line {first_line!r}: {e}") from e


def load_descriptor(path: str = DEFAULT_DESCRIPTOR) -> Descriptor:
    """
    Run a descriptor file and return the handler it registered.

    Raises:
        DescriptorError: file missing or unreadable, the code raised,
            run() was called zero or several times, or the argument to
            run() isn't a usable handler.
    """
    path = os.path.abspath(path)
    try:
        with open(path, encoding="utf-8") as f:
            source = f.read()
    except OSError as e:
        raise DescriptorError(f"Cannot read descriptor {path}: {e.strerror or e}") from e

    options = parse_options_line(source)
    registered: List[HandlerFunc] = []

    def run(handler):
        registered.append(handler)
        return handler

    try:
        with _importable_from(os.path.dirname(path)):
            runpy.run_path(path, init_globals={"run": run}, run_name=DESCRIPTOR_MODULE)
    except SyntaxError as e:
        raise DescriptorError(f"Syntax error in {path}, line {e.lineno}: {e.msg}") from e
    except Exception as e:
        raise DescriptorError(f"Error while loading {path}: {type(e).__name__}: {e}") from e

    if not registered:
        raise DescriptorError(f"{path} never calls run(handler)")
    if len(registered) > 1:
        raise DescriptorError(f"{path} calls run() {len(registered)} times; a server serves one handler")

    handler = registered[0]
    check_handler(handler, path)

    logger.debug(f"Loaded handler {handler!r} from {path}")
    return Descriptor(handler=handler, path=path, options=options)


@contextlib.contextmanager
def _importable_from(directory: str):
    """Put directory at the front of sys.path while the descriptor runs."""
    added = directory not in sys.path
    if added:
        sys.path.insert(0, directory)
    try:
        yield
    finally:
        if added and directory in sys.path:
            sys.path.remove(directory)


def check_handler(handler, path: str = "descriptor") -> None:
    """
    Reject values that can't serve requests.

    Passing a Handler subclass instead of an instance is the most common
    slip ("run(HelloWorld)" instead of "run(HelloWorld())"), so it gets
    its own message.
    """
    if isinstance(handler, type) and issubclass(handler, Handler):
        raise DescriptorError(
            f"{path}: run() got the class {handler.__name__}; pass an instance: run({handler.__name__}())"
        )
    if not is_handler(handler):
        raise DescriptorError(f"{path}: run() needs a callable handler, got {type(handler).__name__}")
