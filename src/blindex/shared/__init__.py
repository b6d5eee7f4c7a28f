"""Shared utilities and protocol definitions."""
from blindex.shared.protocol import (
    BlindexError,
    IndexStats,
    MalformedSnapshot,
    Payload,
    PayloadError,
    SearchResult,
)
from blindex.shared.snapshot import SnapshotCodec
from blindex.shared.utils import (
    make_excerpt,
    Timer,
)

__all__ = [
    "BlindexError",
    "IndexStats",
    "MalformedSnapshot",
    "Payload",
    "PayloadError",
    "SearchResult",
    "SnapshotCodec",
    "make_excerpt",
    "Timer",
]
