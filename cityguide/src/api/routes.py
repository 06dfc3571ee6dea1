"""
City Guide - API Routes
========================
Thin controllers between HTTP and the RAG engine:

    POST /api/chat  → stream a reply to the posted transcript
    GET  /          → the chat widget
    GET  /health    → liveness + index status

No business logic lives here.  Every route reads the shared
``RAGManager`` from ``request.app.state.rag``.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, PlainTextResponse, Response, StreamingResponse
from pydantic import BaseModel, Field

from cityguide.config.prompt_templates import ERROR_RESPONSE
from cityguide.config.settings import settings
from cityguide.src.core.rag_engine import RAGManager
from cityguide.src.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


# ── Request Models ────────────────────────────────────────────────────

class ChatMessage(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(min_length=1)


# ── Routes ────────────────────────────────────────────────────────────

@router.post("/api/chat")
async def chat(request: Request) -> Response:
    """Stream the assistant's reply as plain text; 500 on any failure before the first token."""
    rag: RAGManager = request.app.state.rag
    try:
        body = ChatRequest.model_validate(await request.json())
        tokens = await rag.open_stream(body.messages)
    except Exception:
        logger.exception("Error handling request.")
        return PlainTextResponse(ERROR_RESPONSE, status_code=500)

    return StreamingResponse(tokens, media_type="text/plain; charset=utf-8")


@router.get("/", include_in_schema=False)
async def index() -> FileResponse:
    return FileResponse(settings.STATIC_DIR / "index.html", media_type="text/html")


@router.get("/health")
async def health(request: Request) -> dict[str, str | bool | int]:
    store = request.app.state.rag.vector_store
    chunks = await asyncio.to_thread(store.count) if store is not None else 0
    return {"status": "ok", "index_ready": chunks > 0, "indexed_chunks": chunks}
