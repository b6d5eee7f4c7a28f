"""
blindex: exact-term search over keyed, deterministic term tokens.

Terms are mapped to HMAC tokens under a caller-supplied key; the inverted
index stores only tokens and document ids, so it can be hosted by a party
that must not learn the corpus vocabulary.

Equality leakage is inherent: whoever holds the index can see which
documents share a token, but not the term behind it.
"""
from blindex.engine import IndexEngine
from blindex.shared.protocol import MalformedSnapshot, SearchResult

__version__ = "0.1.0"

__all__ = ["IndexEngine", "MalformedSnapshot", "SearchResult"]
