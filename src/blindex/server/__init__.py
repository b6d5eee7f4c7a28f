"""Server-side components: posting store, payload registry, posting host API."""
from blindex.server.index import PostingStore
from blindex.server.registry import DocumentRegistry
from blindex.server.api import app, create_app, run_server

__all__ = [
    "PostingStore",
    "DocumentRegistry",
    "app",
    "create_app",
    "run_server",
]
