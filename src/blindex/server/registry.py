"""
Document id -> opaque payload.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from blindex.shared.protocol import Payload, SearchResult
from blindex.shared.utils import make_excerpt


@dataclass
class DocumentRegistry:
    """
    In-memory payload store.

    Payloads are kept verbatim; whether they are plaintext or ciphertext is up
    to the caller.
    """
    payloads: Dict[str, Payload] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.payloads)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self.payloads

    def put(self, doc_id: str, payload: Payload) -> None:
        """Store a payload, overwriting any previous one."""
        self.payloads[doc_id] = payload

    def get(self, doc_id: str) -> Optional[Payload]:
        """Payload for `doc_id`, or None."""
        return self.payloads.get(doc_id)

    def remove(self, doc_id: str) -> bool:
        """Drop a payload. Returns False if there was none."""
        return self.payloads.pop(doc_id, None) is not None

    def results_for(
        self,
        doc_ids: Iterable[str],
        excerpt_chars: int,
    ) -> List[SearchResult]:
        """
        Materialize search results.

        Args:
            doc_ids: Matching document ids, already in result order
            excerpt_chars: Maximum excerpt length

        Returns:
            Ranked results; ids without a payload yield a result with
            payload=None
        """
        results = []
        for rank, doc_id in enumerate(doc_ids, start=1):
            payload = self.get(doc_id)
            results.append(SearchResult(
                doc_id=doc_id,
                rank=rank,
                payload=payload,
                excerpt=make_excerpt(payload, excerpt_chars),
            ))
        return results
