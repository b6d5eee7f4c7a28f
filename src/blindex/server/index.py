"""
Inverted index of tokens to document ids.

The store only ever sees tokens and document ids, so it can live on an
untrusted host.
"""
from typing import Dict, Iterable, List, Mapping, Set, Tuple


class PostingStore:
    """
    Token -> set of document ids.

    Keeps a reverse map (document id -> tokens) in step with the forward map
    so a document's postings can be retracted without scanning every token.
    """

    def __init__(self):
        self._postings: Dict[str, Set[str]] = {}
        self._doc_tokens: Dict[str, Set[str]] = {}

    def add(self, token: str, doc_id: str) -> None:
        """Post `doc_id` under `token`. Idempotent."""
        self._postings.setdefault(token, set()).add(doc_id)
        self._doc_tokens.setdefault(doc_id, set()).add(token)

    def lookup(self, token: str) -> Set[str]:
        """Document ids posted under `token`; empty set when unknown."""
        return set(self._postings.get(token, ()))

    def remove_document(self, doc_id: str) -> int:
        """
        Retract every posting of a document.

        Args:
            doc_id: Document to retract

        Returns:
            Number of postings removed
        """
        tokens = self._doc_tokens.pop(doc_id, set())
        for token in tokens:
            doc_ids = self._postings[token]
            doc_ids.discard(doc_id)
            if not doc_ids:
                del self._postings[token]
        return len(tokens)

    def set_document(self, doc_id: str, tokens: Iterable[str]) -> int:
        """Replace a document's postings. Returns the number of previous postings."""
        removed = self.remove_document(doc_id)
        for token in tokens:
            self.add(token, doc_id)
        return removed

    def entries(self) -> List[Tuple[str, List[str]]]:
        """All postings, sorted by token with sorted document ids."""
        return [
            (token, sorted(self._postings[token]))
            for token in sorted(self._postings)
        ]

    def replace(self, postings: Mapping[str, Iterable[str]]) -> None:
        """Discard all postings and load `postings` instead."""
        self._postings = {}
        self._doc_tokens = {}
        for token, doc_ids in postings.items():
            for doc_id in doc_ids:
                self.add(token, doc_id)

    @classmethod
    def from_mapping(cls, postings: Mapping[str, Iterable[str]]) -> "PostingStore":
        store = cls()
        store.replace(postings)
        return store

    def document_ids(self) -> Set[str]:
        """Ids of all documents with at least one posting."""
        return set(self._doc_tokens)

    @property
    def num_tokens(self) -> int:
        return len(self._postings)

    @property
    def num_postings(self) -> int:
        return sum(len(doc_ids) for doc_ids in self._postings.values())

    def __len__(self) -> int:
        return len(self._postings)

    def __contains__(self, token: object) -> bool:
        return token in self._postings
