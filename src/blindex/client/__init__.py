"""Client-side components: key handling, tokenization, search."""
from blindex.client.crypto import Keyring
from blindex.client.tokenizer import Tokenizer
from blindex.client.search import SearchClient

__all__ = ["Keyring", "Tokenizer", "SearchClient"]
