"""
Shared utility functions.
"""
import time
from typing import Optional

from blindex.shared.protocol import Payload


ELLIPSIS = "..."


def make_excerpt(payload: Optional[Payload], max_chars: int) -> Optional[str]:
    """
    Build a bounded-length excerpt of a payload.

    Args:
        payload: Stored document payload
        max_chars: Maximum excerpt length, ellipsis included

    Returns:
        Excerpt string, or None for missing or binary payloads
    """
    if payload is None or isinstance(payload, (bytes, bytearray)):
        return None

    text = " ".join(payload.split())
    if len(text) <= max_chars:
        return text
    if max_chars <= len(ELLIPSIS):
        return text[:max_chars]
    return text[:max_chars - len(ELLIPSIS)].rstrip() + ELLIPSIS


def short_token(token: str, length: int = 8) -> str:
    """Truncate a token for log output."""
    return token[:length]


class Timer:
    """Context manager for timing operations."""

    def __init__(self):
        self.start_time: Optional[float] = None
        self.elapsed: Optional[float] = None

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args) -> None:
        self.elapsed = time.perf_counter() - self.start_time

    @property
    def elapsed_ms(self) -> float:
        """Get elapsed time in milliseconds."""
        if self.elapsed is None:
            if self.start_time is not None:
                return (time.perf_counter() - self.start_time) * 1000
            return 0.0
        return self.elapsed * 1000
