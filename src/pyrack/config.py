"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Every knob of the hosting server in one dataclass. The handler never sees
any of this; configuration is the server's business.

=============================================================================
WHERE SETTINGS COME FROM
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Priority (highest first)                                          │
    │                                                                      │
    │   1. Command line           pyrack -p 3000                          │
    │   2. Descriptor options     first line of rackup.py: #\\ -p 3000     │
    │   3. Environment            PYRACK_PORT=3000 pyrack                 │
    │   4. Defaults               port 9292                               │
    └─────────────────────────────────────────────────────────────────────┘

The CLI (pyrack/__main__.py) does the merging; this module only knows
how to read the environment and check the result.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


DEFAULT_PORT = 9292


@dataclass
class ServerConfig:
    """
    Configuration for the hosting server.

        # Try things locally
        ServerConfig(log_level="DEBUG")

        # Reachable from other machines (e.g. inside a container)
        ServerConfig(host="0.0.0.0", max_workers=32)
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Address to bind. 127.0.0.1 is this machine only; 0.0.0.0 is every interface."""

    port: int = DEFAULT_PORT
    """TCP port. 9292 is the traditional port for this kind of launcher."""

    backlog: int = 128
    """Completed connections the kernel queues before we accept() them."""

    buffer_size: int = 8192
    """Bytes per recv() call."""

    timeout: Optional[float] = 30.0
    """Seconds to wait for a client to send its request. None waits forever."""

    # ─────────────────────────────────────────────────────────────────────
    # HTTP
    # ─────────────────────────────────────────────────────────────────────

    keep_alive: bool = True
    """Serve several requests per connection when the client asks for it."""

    keep_alive_timeout: float = 5.0
    """Idle seconds before a kept-alive connection is closed."""

    max_request_size: int = 10 * 1024 * 1024
    """Largest request (headers + body) we'll read, in bytes."""

    # ─────────────────────────────────────────────────────────────────────
    # THREADS
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    max_workers: int = 16
    queue_size: int = 100
    """Connections waiting for a worker before we answer 503."""

    # ─────────────────────────────────────────────────────────────────────
    # BEHAVIOUR & LOGGING
    # ─────────────────────────────────────────────────────────────────────

    lint: bool = True
    """Check every handler response against the contract (pyrack/lint.py)."""

    log_level: str = "INFO"
    access_log: bool = True
    """One Common Log Format line per request on the 'pyrack.access' logger."""

    server_name: str = "PyRack/1.0"
    """Sent in the Server header."""

    @classmethod
    def from_env(cls, environ=None) -> "ServerConfig":
        """
        Build a config from PYRACK_* environment variables.

            PYRACK_HOST       bind address
            PYRACK_PORT       port
            PYRACK_WORKERS    max worker threads
            PYRACK_TIMEOUT    request read timeout (seconds)
            PYRACK_LOG_LEVEL  DEBUG / INFO / WARNING / ERROR

        Unset variables keep the dataclass defaults.

        Raises:
            ValueError: if a numeric variable isn't a number.
        """
        env = os.environ if environ is None else environ
        config = cls()

        if "PYRACK_HOST" in env:
            config.host = env["PYRACK_HOST"]
        if "PYRACK_PORT" in env:
            config.port = int(env["PYRACK_PORT"])
        if "PYRACK_WORKERS" in env:
            config.max_workers = int(env["PYRACK_WORKERS"])
            config.min_workers = min(config.min_workers, config.max_workers)
        if "PYRACK_TIMEOUT" in env:
            config.timeout = float(env["PYRACK_TIMEOUT"])
        if "PYRACK_LOG_LEVEL" in env:
            config.log_level = env["PYRACK_LOG_LEVEL"].upper()

        return config

    def validate(self) -> None:
        """
        Fail fast on nonsense, before any socket is opened.

        Raises:
            ValueError: describing the first bad setting.
        """
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 1-65535.")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {self.log_level}")

    @property
    def url(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"http://{host}:{self.port}/"
