"""
Configuration module for the HTTP payload tester.

Startup flags come from the command line, the listening port and a few
extras come from environment variables. Everything is validated once and
frozen into a Settings value that the server is built from.
"""

import argparse
import math
import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

# ========= DEFAULTS =========

PROG_NAME = "cf-http-payload-tester"
DEFAULT_PAYLOAD_FILENAME = "test_payload"
DEFAULT_TIMEOUT = "5s"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_LOG_LEVEL = "INFO"
# Names understood by both logging and uvicorn
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

# Seconds per duration unit
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


class ConfigError(Exception):
    """Raised when the process cannot start with the given configuration."""


@dataclass(frozen=True)
class Settings:
    timeout: float
    use_https: bool
    payload_path: str
    port: int
    host: str = DEFAULT_HOST

    @property
    def protocol(self) -> str:
        return "https" if self.use_https else "http"


def parse_duration(value: str) -> float:
    """
    Parse a duration such as "5s", "1500ms" or "1m30s" into seconds.

    A bare number is read as seconds. Raises ValueError on anything else.
    """
    text = value.strip()
    if not text:
        raise ValueError("empty duration")

    try:
        seconds = float(text)
    except ValueError:
        pos = 0
        seconds = 0.0
        for match in _DURATION_PART.finditer(text):
            if match.start() != pos:
                break
            seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
            pos = match.end()
        if pos != len(text):
            raise ValueError(f"invalid duration {value!r}")

    if not math.isfinite(seconds):
        raise ValueError(f"invalid duration {value!r}")
    if seconds < 0:
        raise ValueError(f"negative duration {value!r}")
    return seconds


def format_duration(seconds: float) -> str:
    """Render seconds back into a short duration string for log lines."""
    if seconds >= 1 or seconds == 0:
        return f"{seconds:g}s"
    return f"{seconds * 1000:g}ms"


def _duration_arg(value: str) -> float:
    try:
        return parse_duration(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=PROG_NAME, description="Test your HTTP requests")
    parser.add_argument(
        "-t", "--timeout",
        type=_duration_arg,
        default=DEFAULT_TIMEOUT,
        help=(
            "Time to wait for response to check calls (e.g. 5s, 500ms). "
            "Applies to connecting and to each read separately, not to the "
            "whole request; 0 waits indefinitely"
        ),
    )
    parser.add_argument(
        "-s", "--https-out",
        action="store_true",
        help="Use https in outbound URL instead of http",
    )
    parser.add_argument(
        "-p", "--payload",
        default=DEFAULT_PAYLOAD_FILENAME,
        help="Target payload file",
    )
    return parser


def get_port(environ: Mapping[str, str]) -> int:
    """Read and validate the PORT environment variable."""
    raw = environ.get("PORT", "")
    if raw == "":
        raise ConfigError("Please set PORT environment variable with port for server to listen on")
    try:
        port = int(raw)
    except ValueError:
        raise ConfigError("PORT environment variable was not numeric")
    if not 0 <= port <= 65535:
        raise ConfigError(f"PORT environment variable out of range: {port}")
    return port


def get_host(environ: Mapping[str, str]) -> str:
    """Get bind address from environment or use default."""
    return environ.get("HOST") or DEFAULT_HOST


def get_log_level(environ: Optional[Mapping[str, str]] = None) -> str:
    """Get log level name from environment or use default."""
    environ = os.environ if environ is None else environ
    level = (environ.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()
    if level not in LOG_LEVELS:
        raise ConfigError(f"LOG_LEVEL environment variable is not a log level: {level}")
    return level


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    # String defaults also go through type=, so timeout is in seconds here
    return build_parser().parse_args(argv)


def settings_from_args(args: argparse.Namespace, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from parsed flags and the environment.

    The payload file itself is checked by payload.load_payload before this
    is called, matching the startup order payload first, PORT second.
    """
    environ = os.environ if environ is None else environ
    return Settings(
        timeout=args.timeout,
        use_https=args.https_out,
        payload_path=args.payload,
        port=get_port(environ),
        host=get_host(environ),
    )
