"""
=============================================================================
PYRACK LAUNCHER
=============================================================================

Reads a startup descriptor, works out the server settings, prints a
banner and serves the handler.

=============================================================================
USAGE
=============================================================================

    # Serve the handler named in ./rackup.py on http://127.0.0.1:9292/
    pyrack

    # A different descriptor, on another port
    pyrack examples/pretty_rackup.py -p 3000

    # Reachable from other machines
    pyrack -H 0.0.0.0

    # Same thing without installing the console script
    python -m pyrack examples/hello_rackup.py

=============================================================================
WHERE EACH SETTING COMES FROM
=============================================================================

    command line  >  descriptor "#\\" line  >  PYRACK_* variables  >  defaults

So a lesson can ship "#\\ -p 8080" in its descriptor, and you can still
override it with "pyrack -p 9000" without editing the file.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import ServerConfig
from .descriptor import DEFAULT_DESCRIPTOR, DescriptorError, load_descriptor
from .server import Server


class OptionsLineParser(argparse.ArgumentParser):
    """Parses a descriptor's "#\\" line; errors become DescriptorError, not exit(2)."""

    def error(self, message):
        raise DescriptorError(f"Invalid options line: {message}")


def build_parser(parser_class=argparse.ArgumentParser, with_descriptor: bool = True) -> argparse.ArgumentParser:
    """
    The launcher's argument parser.

    Every option defaults to None so we can tell "not given" apart from
    "given with the default value" when layering settings.
    """
    parser = parser_class(
        prog="pyrack",
        description="Serve a handler(environ) -> (status, headers, body) callable over HTTP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pyrack                                  # serve ./rackup.py on port 9292
  pyrack examples/pretty_rackup.py        # another descriptor
  pyrack -p 3000 -H 0.0.0.0               # another port, all interfaces
        """,
    )

    if with_descriptor:
        parser.add_argument(
            "descriptor",
            nargs="?",
            default=DEFAULT_DESCRIPTOR,
            help=f"Startup descriptor naming the handler (default: {DEFAULT_DESCRIPTOR})",
        )

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Address to bind (default: 127.0.0.1, use 0.0.0.0 for all interfaces)",
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 9292)",
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Worker threads to start with (max is twice this)",
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        default=None,
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        default=None,
        help="No banner and no access log",
    )
    parser.add_argument(
        "--no-lint",
        dest="lint",
        action="store_false",
        default=None,
        help="Don't check handler responses against the contract",
    )

    if with_descriptor:
        parser.add_argument(
            "--version", "-v",
            action="version",
            version=f"PyRack {__version__}",
        )

    return parser


def apply_options(config: ServerConfig, options: argparse.Namespace) -> ServerConfig:
    """Copy every option that was actually given onto config."""
    if options.host is not None:
        config.host = options.host
    if options.port is not None:
        config.port = options.port
    if options.workers is not None:
        config.min_workers = options.workers
        config.max_workers = options.workers * 2
    if options.log_level is not None:
        config.log_level = options.log_level
    if options.quiet:
        config.access_log = False
    if options.lint is not None:
        config.lint = options.lint
    return config


def parse_file_options(options: List[str]) -> argparse.Namespace:
    """Parse the tokens of a descriptor's "#\\" line."""
    parser = build_parser(OptionsLineParser, with_descriptor=False)
    return parser.parse_args(options)


def resolve_config(
    args: argparse.Namespace,
    file_options: Optional[argparse.Namespace] = None,
    environ=None,
) -> ServerConfig:
    """
    Layer the settings: defaults, then environment, then descriptor line,
    then command line.

    Raises:
        ValueError: from a malformed PYRACK_* variable.
    """
    config = ServerConfig.from_env(environ)
    if file_options is not None:
        apply_options(config, file_options)
    apply_options(config, args)
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point for "pyrack" and "python -m pyrack".

    Returns:
        Process exit status: 0 after a clean shutdown, 1 on a bad
        descriptor, bad settings or a port that can't be bound.
    """
    args = build_parser().parse_args(argv)

    try:
        descriptor = load_descriptor(args.descriptor)
        file_options = parse_file_options(descriptor.options)
    except DescriptorError as e:
        print(f"pyrack: {e}", file=sys.stderr)
        return 1

    try:
        config = resolve_config(args, file_options)
        config.validate()
    except ValueError as e:
        print(f"pyrack: invalid configuration: {e}", file=sys.stderr)
        return 1

    quiet = bool(args.quiet or file_options.quiet)
    server = Server(descriptor.handler, config)

    try:
        server.run(banner=not quiet)
    except OSError as e:
        print(f"pyrack: cannot serve on {config.host}:{config.port}: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
