"""
Client-side search orchestration against a remote posting host.

Coordinates the flow:
1. Tokenize the query locally
2. Send only the token to the host
3. Receive matching document ids
4. Materialize results from locally held payloads

The host never sees terms or payloads.
"""
from typing import Callable, Iterable, List, Optional, Tuple

from blindex.client.crypto import Keyring
from blindex.client.tokenizer import Tokenizer
from blindex.server.registry import DocumentRegistry
from blindex.shared.protocol import Payload, SearchResult
from blindex.shared.utils import Timer, short_token


class SearchClient:
    """
    Client-side search coordinator.

    Holds the keyring and the document payloads; postings live wherever the
    injected callables send them.
    """

    DEFAULT_EXCERPT_CHARS = 80

    def __init__(
        self,
        keyring: Keyring,
        documents: Optional[DocumentRegistry] = None,
        excerpt_chars: int = DEFAULT_EXCERPT_CHARS,
    ):
        """
        Initialize search client.

        Args:
            keyring: Keyring used to derive tokens
            documents: Local payload store (a fresh one by default)
            excerpt_chars: Maximum excerpt length in results
        """
        self.tokenizer = Tokenizer(keyring)
        self.documents = documents if documents is not None else DocumentRegistry()
        self.excerpt_chars = excerpt_chars

    def index_document(
        self,
        doc_id: str,
        content: str,
        set_postings_fn: Callable[[str, List[str]], object],
        payload: Optional[Payload] = None,
    ) -> List[str]:
        """
        Index a document on the remote host.

        Args:
            doc_id: Document id
            content: Text to index
            set_postings_fn: Replaces the document's postings on the host
                             Signature: (doc_id, tokens) -> Any
            payload: Payload kept locally; defaults to `content`

        Returns:
            Tokens sent to the host
        """
        tokens = self.tokenizer.unique_tokens(content)
        # Payload is stored only once the host has accepted the postings
        set_postings_fn(doc_id, tokens)
        self.documents.put(doc_id, content if payload is None else payload)
        return tokens

    def search(
        self,
        query: str,
        lookup_fn: Callable[[str], Iterable[str]],
        verbose: bool = False,
    ) -> Tuple[List[SearchResult], dict]:
        """
        Exact-term search through the remote host.

        Args:
            query: Search term (only the first term is used)
            lookup_fn: Fetches document ids for a token from the host
                       Signature: (token) -> doc_ids
            verbose: Print timing information

        Returns:
            Tuple of (search results, timing info)
        """
        timing = {}

        if verbose:
            print("Step 1: Tokenizing query...")
        with Timer() as t:
            token = self.tokenizer.query_token(query)
        timing["tokenize_ms"] = t.elapsed_ms

        if token is None:
            if verbose:
                print("  Query has no terms")
            timing["lookup_ms"] = 0.0
            timing["materialize_ms"] = 0.0
            timing["total_ms"] = timing["tokenize_ms"]
            return [], timing

        if verbose:
            print(f"Step 2: Looking up token {short_token(token)}...")
        with Timer() as t:
            doc_ids = sorted(set(lookup_fn(token)))
        timing["lookup_ms"] = t.elapsed_ms
        if verbose:
            print(f"  Host returned {len(doc_ids)} documents in {t.elapsed_ms:.2f}ms")

        if verbose:
            print("Step 3: Materializing results...")
        with Timer() as t:
            results = self.documents.results_for(doc_ids, self.excerpt_chars)
        timing["materialize_ms"] = t.elapsed_ms

        timing["total_ms"] = sum([
            timing["tokenize_ms"],
            timing["lookup_ms"],
            timing["materialize_ms"],
        ])

        if verbose:
            print(f"\nTotal time: {timing['total_ms']:.2f}ms")

        return results, timing
