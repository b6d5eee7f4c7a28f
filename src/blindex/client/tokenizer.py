"""
Text normalization and term tokens.
"""
import re
import unicodedata
from itertools import groupby
from typing import List, Optional

from blindex.client.crypto import Keyring

# Letters, marks and numbers; everything else (underscore included) separates.
_TERM_CATEGORIES = frozenset("LMN")

# Lowercasing "İ" yields "i" + COMBINING DOT ABOVE; the dot is redundant on i/j.
_REDUNDANT_DOT_RE = re.compile("(?<=[ij])\u0307")


def _is_term_char(char: str) -> bool:
    return unicodedata.category(char)[0] in _TERM_CATEGORIES


class Tokenizer:
    """
    Splits text into normalized terms and maps terms to tokens.

    Terms never leave this class; only their tokens do.
    """

    def __init__(self, keyring: Keyring):
        self.keyring = keyring

    @staticmethod
    def tokenize(text: str) -> List[str]:
        """
        Normalize text into terms.

        Lowercases and NFC-normalizes, then splits on every character that is
        not a letter, combining mark or digit, so words written with marks
        (Devanagari vowel signs, Hebrew points) stay whole.

        Args:
            text: Raw document or query text

        Returns:
            Non-empty terms in left-to-right order
        """
        if not text:
            return []
        normalized = unicodedata.normalize("NFC", text.lower())
        normalized = _REDUNDANT_DOT_RE.sub("", normalized)
        return [
            "".join(run)
            for is_term, run in groupby(normalized, key=_is_term_char)
            if is_term
        ]

    def derive_token(self, term: str) -> str:
        """Deterministic token for a single term."""
        return self.keyring.token_for(term)

    def unique_tokens(self, text: str) -> List[str]:
        """Tokens of the distinct terms of `text`, in first-occurrence order."""
        terms = dict.fromkeys(self.tokenize(text))
        return [self.derive_token(term) for term in terms]

    def query_token(self, query: str) -> Optional[str]:
        """
        Token for an exact-term query.

        Only the first term of the query is used.

        Returns:
            Token, or None when the query contains no terms
        """
        terms = self.tokenize(query)
        if not terms:
            return None
        return self.derive_token(terms[0])
