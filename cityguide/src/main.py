"""
City Guide - Application Entry Point
=====================================
FastAPI application factory.  Registers the routes from
``cityguide.src.api.routes``, configures CORS, and owns the lifespan:

    startup  → kick off the one-time PDF index build in a worker
               thread.  The server accepts requests immediately;
               until the build finishes (or if it fails) every
               request uses the web fallback.
    shutdown → wait for a build still in progress, close the HTTP client.

Run:
    cityguide-server
    uvicorn cityguide.src.main:app --reload
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cityguide.config.settings import settings
from cityguide.src.api.routes import router
from cityguide.src.core.ingestor import build_vector_store
from cityguide.src.core.rag_engine import RAGManager
from cityguide.src.utils.logger import align_uvicorn_loggers, get_logger

logger = get_logger(__name__)


def _build_embedder() -> object:
    from langchain_google_genai import GoogleGenerativeAIEmbeddings

    return GoogleGenerativeAIEmbeddings(model=settings.EMBEDDING_MODEL, google_api_key=settings.GOOGLE_API_KEY.get_secret_value())


async def _index_in_background(rag: RAGManager) -> None:
    try:
        embedder = _build_embedder()
    except Exception:
        logger.exception("Failed to create vector store: embedding model unavailable.")
        return
    store = await asyncio.to_thread(build_vector_store, embedder)
    rag.attach_store(store)


def create_app(rag: RAGManager | None = None, index_on_startup: bool = True) -> FastAPI:
    """
    Build the FastAPI application.

    Parameters
    ----------
    rag
        Optional pre-built ``RAGManager`` (tests inject one with fakes).
    index_on_startup
        Build the PDF index when the app starts.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        task = asyncio.create_task(_index_in_background(app.state.rag)) if index_on_startup else None
        yield
        if task is not None and not task.done():
            # to_thread work cannot be interrupted; let the build finish writing
            logger.info("Index build still running at shutdown; waiting for it to finish.")
            await task
        await app.state.rag.web_fetcher.aclose()

    app = FastAPI(title="City Guide", lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=settings.CORS_ORIGINS, allow_methods=["*"], allow_headers=["*"])
    app.state.rag = rag or RAGManager()
    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    align_uvicorn_loggers()
    uvicorn.run("cityguide.src.main:app", host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    run()
