"""
Index engine: ingestion, exact-term search and snapshots.

Data flow:
- add_document: Tokenizer -> PostingStore + DocumentRegistry
- search:       Tokenizer -> PostingStore -> DocumentRegistry -> results
- snapshots:    PostingStore <-> SnapshotCodec <-> bytes
"""
import logging
import threading
from pathlib import Path
from typing import List, Optional, Union

from blindex.client.crypto import Keyring
from blindex.client.tokenizer import Tokenizer
from blindex.server.index import PostingStore
from blindex.server.registry import DocumentRegistry
from blindex.shared.protocol import IndexStats, Payload, SearchResult
from blindex.shared.snapshot import SnapshotCodec
from blindex.shared.utils import short_token

logger = logging.getLogger(__name__)


class IndexEngine:
    """
    Searchable index over keyed term tokens.

    Each instance owns its key, postings and payloads; every public operation
    runs under the instance lock, so a search never observes a half-applied
    ingestion or import.
    """

    DEFAULT_EXCERPT_CHARS = 80

    def __init__(
        self,
        master_key: Union[bytes, bytearray],
        excerpt_chars: int = DEFAULT_EXCERPT_CHARS,
    ):
        """
        Initialize engine.

        Args:
            master_key: Opaque symmetric secret (at least 16 bytes)
            excerpt_chars: Maximum excerpt length in search results
        """
        if excerpt_chars < 1:
            raise ValueError(f"excerpt_chars must be positive, got {excerpt_chars}")

        self.tokenizer = Tokenizer(Keyring(master_key))
        self.postings = PostingStore()
        self.documents = DocumentRegistry()
        self.codec = SnapshotCodec()
        self.excerpt_chars = excerpt_chars
        self._lock = threading.RLock()

    def add_document(
        self,
        doc_id: str,
        content: str,
        payload: Optional[Payload] = None,
    ) -> None:
        """
        Index a document, replacing any previous version.

        Args:
            doc_id: Caller-chosen document id
            content: Text to index
            payload: What to store for the document; defaults to `content`.
                     Pass pre-encrypted bytes to keep the registry opaque.
        """
        tokens = self.tokenizer.unique_tokens(content)

        with self._lock:
            retracted = self.postings.remove_document(doc_id)
            self.documents.put(doc_id, content if payload is None else payload)
            for token in tokens:
                self.postings.add(token, doc_id)

        logger.debug(
            "Indexed %r: %d postings (%d retracted)", doc_id, len(tokens), retracted
        )

    def remove_document(self, doc_id: str) -> bool:
        """
        Drop a document's postings and payload.

        Returns:
            False if the engine knew nothing about `doc_id`
        """
        with self._lock:
            retracted = self.postings.remove_document(doc_id)
            had_payload = self.documents.remove(doc_id)

        logger.debug("Removed %r: %d postings retracted", doc_id, retracted)
        return bool(retracted) or had_payload

    def search(self, query: str) -> List[SearchResult]:
        """
        Exact-term search.

        The query is normalized like document text and only its first term is
        used. Results are ordered by document id.

        Args:
            query: Search term

        Returns:
            Ranked results; empty when nothing matches
        """
        token = self.tokenizer.query_token(query)
        if token is None:
            return []

        with self._lock:
            doc_ids = sorted(self.postings.lookup(token))
            results = self.documents.results_for(doc_ids, self.excerpt_chars)

        logger.debug("Token %s matched %d documents", short_token(token), len(results))
        return results

    def export_snapshot(self) -> bytes:
        """Serialize the posting store. Payloads are not included."""
        with self._lock:
            data = self.codec.encode(self.postings.entries())
            num_tokens = self.postings.num_tokens

        logger.info("Exported snapshot: %d tokens, %d bytes", num_tokens, len(data))
        return data

    def import_snapshot(self, data: Union[bytes, bytearray, str]) -> None:
        """
        Replace the posting store with a snapshot.

        The document registry is left as is.

        Raises:
            MalformedSnapshot: invalid data; the engine is unchanged
        """
        postings = PostingStore.from_mapping(self.codec.decode(data))

        with self._lock:
            self.postings = postings

        logger.info("Imported snapshot: %d tokens", postings.num_tokens)

    def save_snapshot(self, path: Union[str, Path]) -> None:
        """Write `export_snapshot()` to a file."""
        Path(path).write_bytes(self.export_snapshot())

    def load_snapshot(self, path: Union[str, Path]) -> None:
        """`import_snapshot()` from a file."""
        self.import_snapshot(Path(path).read_bytes())

    def stats(self) -> IndexStats:
        with self._lock:
            return IndexStats(
                num_tokens=self.postings.num_tokens,
                num_postings=self.postings.num_postings,
                num_documents=len(self.documents.payloads.keys() | self.postings.document_ids()),
            )

    def __repr__(self) -> str:
        return f"IndexEngine(keyring={self.tokenizer.keyring!r})"
