"""
FastAPI posting host.

Hosts a PostingStore for clients that keep their key and payloads local.
The host only ever receives tokens and document ids.

Endpoints:
- GET    /health                    - Store size
- PUT    /documents/{doc_id}/postings - Replace a document's postings
- DELETE /documents/{doc_id}/postings - Retract a document's postings
- GET    /postings/{token}          - Document ids posted under a token
- GET    /snapshot                  - Export postings
- PUT    /snapshot                  - Replace postings from a snapshot

Document ids may contain "/".
"""
import threading
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi import Path as PathParam
from fastapi.responses import Response
from pydantic import BaseModel, Field

from blindex.server.index import PostingStore
from blindex.shared.protocol import MalformedSnapshot
from blindex.shared.snapshot import TOKEN_PATTERN, SnapshotCodec, TokenHex
from blindex.shared.utils import Timer


# Pydantic models for API
class PostingsRequest(BaseModel):
    """Tokens of one document."""
    tokens: List[TokenHex] = Field(..., description="Hex tokens of the document's distinct terms")


class PostingsResponse(BaseModel):
    """Result of replacing or retracting a document's postings."""
    doc_id: str
    num_postings: int
    num_retracted: int


class LookupResponse(BaseModel):
    """Document ids for a token."""
    token: str
    doc_ids: List[str]
    server_time_ms: float


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    num_tokens: int
    num_postings: int
    num_documents: int


class ServerState:
    """Per-app state container."""
    def __init__(self, postings: Optional[PostingStore] = None):
        self.postings = postings if postings is not None else PostingStore()
        self.codec = SnapshotCodec()
        self.lock = threading.Lock()


router = APIRouter()


def get_state(request: Request) -> ServerState:
    return request.app.state.blindex


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Health check endpoint."""
    state = get_state(request)
    with state.lock:
        return HealthResponse(
            status="healthy",
            num_tokens=state.postings.num_tokens,
            num_postings=state.postings.num_postings,
            num_documents=len(state.postings.document_ids()),
        )


@router.put("/documents/{doc_id:path}/postings", response_model=PostingsResponse)
async def set_postings(doc_id: str, body: PostingsRequest, request: Request):
    """Replace all postings of a document."""
    state = get_state(request)
    tokens = set(body.tokens)
    with state.lock:
        retracted = state.postings.set_document(doc_id, tokens)
    return PostingsResponse(
        doc_id=doc_id,
        num_postings=len(tokens),
        num_retracted=retracted,
    )


@router.delete("/documents/{doc_id:path}/postings", response_model=PostingsResponse)
async def delete_postings(doc_id: str, request: Request):
    """Retract all postings of a document."""
    state = get_state(request)
    with state.lock:
        retracted = state.postings.remove_document(doc_id)
    if not retracted:
        raise HTTPException(status_code=404, detail=f"No postings for document {doc_id!r}")
    return PostingsResponse(doc_id=doc_id, num_postings=0, num_retracted=retracted)


@router.get("/postings/{token}", response_model=LookupResponse)
async def lookup(
    request: Request,
    token: str = PathParam(..., pattern=TOKEN_PATTERN),
):
    """Document ids posted under a token. Unknown tokens yield an empty list."""
    state = get_state(request)
    with Timer() as t:
        with state.lock:
            doc_ids = sorted(state.postings.lookup(token))
    return LookupResponse(token=token, doc_ids=doc_ids, server_time_ms=t.elapsed_ms)


@router.get("/snapshot")
async def export_snapshot(request: Request):
    """Canonical snapshot of the posting store."""
    state = get_state(request)
    with state.lock:
        data = state.codec.encode(state.postings.entries())
    return Response(content=data, media_type="application/json")


@router.put("/snapshot", response_model=HealthResponse)
async def import_snapshot(request: Request):
    """Replace the posting store. Invalid snapshots leave it untouched."""
    state = get_state(request)
    data = await request.body()

    try:
        postings = PostingStore.from_mapping(state.codec.decode(data))
    except MalformedSnapshot as e:
        raise HTTPException(status_code=400, detail=str(e))

    with state.lock:
        state.postings = postings
    return HealthResponse(
        status="imported",
        num_tokens=postings.num_tokens,
        num_postings=postings.num_postings,
        num_documents=len(postings.document_ids()),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Report store size on startup and shutdown."""
    state = app.state.blindex
    print(f"Posting host ready: {state.postings.num_tokens} tokens")
    yield
    print("Posting host shutting down...")


def create_app(postings: Optional[PostingStore] = None) -> FastAPI:
    """
    Create a posting host app with its own state.

    Args:
        postings: Store to serve (empty by default)
    """
    app = FastAPI(
        title="blindex",
        description="Posting host for keyed-token inverted indexes",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.blindex = ServerState(postings)
    app.include_router(router)
    return app


app = create_app()


def run_server(host: str = "127.0.0.1", port: int = 8000):
    """Run the server directly."""
    import uvicorn
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
