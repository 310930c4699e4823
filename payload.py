"""
Payload source for delivery checks.

The payload file is read once at startup and kept in memory, so every
check request sends the full, identical byte string without touching a
shared file position.
"""

from dataclasses import dataclass

from config import ConfigError


@dataclass(frozen=True)
class Payload:
    path: str
    content: bytes

    @property
    def length(self) -> int:
        return len(self.content)


def load_payload(path: str) -> Payload:
    """
    Read the payload file into memory.

    Args:
        path: Path to the file whose bytes are sent on every check

    Returns:
        Payload holding the file's bytes

    Raises:
        ConfigError: if the file cannot be opened or read
    """
    try:
        with open(path, "rb") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(f"Could not open payload file: {e}") from e
    return Payload(path=path, content=content)
