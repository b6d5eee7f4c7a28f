"""Integration tests: SearchClient against the posting host API."""
from urllib.parse import quote

import pytest
from fastapi.testclient import TestClient

from blindex import IndexEngine
from blindex.client.crypto import Keyring
from blindex.client.search import SearchClient
from blindex.server.api import create_app
from blindex.server.index import PostingStore

KEY = b"integration-key-0123456789abcdef"

DOCS = {
    "doc1": "Swift is a powerful language",
    "doc2": "Cryptography is essential",
}


@pytest.fixture
def http():
    with TestClient(create_app()) as client:
        yield client


def make_remote(http):
    """Callables that talk to the posting host."""
    def set_postings(doc_id, tokens):
        path = f"/documents/{quote(doc_id, safe='')}/postings"
        response = http.put(path, json={"tokens": tokens})
        response.raise_for_status()
        return response.json()

    def lookup(token):
        response = http.get(f"/postings/{token}")
        response.raise_for_status()
        return response.json()["doc_ids"]

    return set_postings, lookup


@pytest.fixture
def indexed(http):
    client = SearchClient(Keyring(KEY))
    set_postings, lookup = make_remote(http)
    for doc_id, content in DOCS.items():
        client.index_document(doc_id, content, set_postings)
    return client, lookup


class TestRemoteSearch:
    """Test search through the posting host."""

    def test_search(self, indexed):
        client, lookup = indexed

        results, _ = client.search("Swift", lookup)
        assert [r.doc_id for r in results] == ["doc1"]
        assert results[0].excerpt == DOCS["doc1"]

        results, _ = client.search("is", lookup)
        assert [r.doc_id for r in results] == ["doc1", "doc2"]

        results, _ = client.search("nonexistent", lookup)
        assert results == []

    def test_timing(self, indexed):
        """Test that timing information is captured."""
        client, lookup = indexed
        _, timing = client.search("swift", lookup)

        assert "tokenize_ms" in timing
        assert "lookup_ms" in timing
        assert "materialize_ms" in timing
        assert "total_ms" in timing
        assert timing["total_ms"] >= timing["lookup_ms"]

    def test_query_without_terms(self, indexed):
        client, lookup = indexed

        def fail(token):
            raise AssertionError("host must not be contacted")

        results, timing = client.search("...", fail)
        assert results == []
        assert timing["lookup_ms"] == 0.0

    def test_verbose(self, indexed, capsys):
        client, lookup = indexed
        client.search("swift", lookup, verbose=True)
        assert "Total time" in capsys.readouterr().out

    def test_overwrite(self, http):
        client = SearchClient(Keyring(KEY))
        set_postings, lookup = make_remote(http)
        client.index_document("doc1", "alpha", set_postings)
        client.index_document("doc1", "beta", set_postings)

        assert client.search("alpha", lookup)[0] == []
        assert [r.doc_id for r in client.search("beta", lookup)[0]] == ["doc1"]

    def test_failed_host_call_keeps_old_payload(self, indexed):
        """Payload is only replaced once the host accepts the postings."""
        client, lookup = indexed

        def unreachable(doc_id, tokens):
            raise ConnectionError("host down")

        with pytest.raises(ConnectionError):
            client.index_document("doc1", "Rust is fast", unreachable)

        results, _ = client.search("swift", lookup)
        assert results[0].payload == DOCS["doc1"]
        assert client.documents.get("doc1") == DOCS["doc1"]

    def test_host_never_sees_terms(self, http, indexed):
        data = http.get("/snapshot").content.lower()
        for term in [b"swift", b"powerful", b"cryptography"]:
            assert term not in data

    def test_snapshot_matches_engine(self, http, indexed):
        """A host fed by a client and a local engine agree byte for byte."""
        engine = IndexEngine(KEY)
        for doc_id, content in DOCS.items():
            engine.add_document(doc_id, content)

        assert http.get("/snapshot").content == engine.export_snapshot()


class TestPostingHostAPI:
    """Test the posting host endpoints."""

    def test_health(self, http, indexed):
        body = http.get("/health").json()
        assert body["status"] == "healthy"
        assert body["num_documents"] == 2
        assert body["num_postings"] == 8

    def test_lookup_unknown_token(self, http):
        response = http.get("/postings/" + "0" * 64)
        assert response.status_code == 200
        assert response.json()["doc_ids"] == []

    def test_lookup_invalid_token(self, http):
        assert http.get("/postings/swift").status_code == 422

    def test_set_postings_invalid_token(self, http):
        response = http.put("/documents/doc1/postings", json={"tokens": ["swift"]})
        assert response.status_code == 422

    def test_set_postings_counts(self, http):
        token = "a" * 64
        body = http.put("/documents/doc1/postings", json={"tokens": [token, token]}).json()
        assert body == {"doc_id": "doc1", "num_postings": 1, "num_retracted": 0}

    def test_delete_postings(self, http, indexed):
        client, lookup = indexed
        response = http.delete("/documents/doc1/postings")
        assert response.status_code == 200
        assert response.json()["num_retracted"] == 5
        assert [r.doc_id for r in client.search("is", lookup)[0]] == ["doc2"]

    def test_doc_id_with_slash(self, http):
        client = SearchClient(Keyring(KEY))
        set_postings, lookup = make_remote(http)
        client.index_document("notes/2024", "quarterly notes", set_postings)

        results, _ = client.search("quarterly", lookup)
        assert [r.doc_id for r in results] == ["notes/2024"]

        response = http.delete("/documents/" + quote("notes/2024", safe="") + "/postings")
        assert response.status_code == 200
        assert response.json()["doc_id"] == "notes/2024"
        assert client.search("quarterly", lookup)[0] == []

    def test_delete_unknown(self, http):
        assert http.delete("/documents/missing/postings").status_code == 404

    def test_import_snapshot(self, http):
        engine = IndexEngine(KEY)
        engine.add_document("doc9", "imported words")

        response = http.put("/snapshot", content=engine.export_snapshot())
        assert response.status_code == 200
        assert response.json()["num_tokens"] == 2
        assert http.get("/snapshot").content == engine.export_snapshot()

    def test_import_malformed(self, http, indexed):
        before = http.get("/snapshot").content

        response = http.put("/snapshot", content=b"[1, 2, 3]")

        assert response.status_code == 400
        assert "Invalid snapshot" in response.json()["detail"]
        assert http.get("/snapshot").content == before

    def test_apps_do_not_share_state(self, http, indexed):
        with TestClient(create_app()) as other:
            assert other.get("/health").json()["num_tokens"] == 0

    def test_create_app_with_store(self):
        store = PostingStore.from_mapping({"b" * 64: ["doc1"]})
        with TestClient(create_app(store)) as client:
            assert client.get("/postings/" + "b" * 64).json()["doc_ids"] == ["doc1"]
