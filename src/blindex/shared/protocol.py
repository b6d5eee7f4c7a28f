"""
Protocol definitions shared by the engine, the client and the posting host.
"""
from dataclasses import dataclass
from typing import Optional, Union

# Opaque document payload, stored and returned verbatim.
Payload = Union[str, bytes]


class BlindexError(Exception):
    """Base class for errors raised by blindex."""


class MalformedSnapshot(BlindexError, ValueError):
    """Snapshot data is not valid JSON or does not have the expected shape."""


class PayloadError(BlindexError, ValueError):
    """A sealed payload could not be opened (wrong key, wrong id or tampered)."""


@dataclass
class SearchResult:
    """
    One hit of an exact-term search.

    `payload` and `excerpt` are None when the document id is present in the
    posting store but the registry holds nothing for it (e.g. after a snapshot
    import without the accompanying documents).
    """
    doc_id: str
    rank: int
    payload: Optional[Payload] = None
    excerpt: Optional[str] = None

    @property
    def has_payload(self) -> bool:
        return self.payload is not None


@dataclass
class IndexStats:
    """Size of an index."""
    num_tokens: int
    num_postings: int
    num_documents: int
