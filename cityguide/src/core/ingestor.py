"""
City Guide - DocumentIndexer
=============================
Builds the embedding index from the one fixed PDF: read → clean →
split → embed → store.

Key design decisions:
    • **Dependency Injection** – receives a ``CityVectorStore``.
    • **Character splitting** – ``CharacterTextSplitter`` with
      ``CHUNK_SIZE`` / ``CHUNK_OVERLAP`` (1000 / 200 by default),
      splitting on paragraph breaks.
    • **Caching** – the MD5 digest of the PDF is remembered after a
      successful build; an unchanged PDF with a populated table is
      not re-embedded on the next start.  A changed PDF drops the
      table and rebuilds it.

Usage:
    from cityguide.src.core.ingestor import DocumentIndexer
    indexer = DocumentIndexer(vector_store)
    summary = indexer.run()
"""

from __future__ import annotations

import hashlib
import json
import time
from pathlib import Path
from typing import Any

from langchain_core.documents import Document
from langchain_text_splitters import CharacterTextSplitter
from pypdf import PdfReader

from cityguide.config.settings import settings
from cityguide.src.database.vector_store import CityVectorStore, Embedder
from cityguide.src.utils.logger import get_logger
from cityguide.src.utils.text_utils import clean_text

logger = get_logger(__name__)

_HASH_CACHE_NAME = "index_hashes.json"


class DocumentIndexer:
    """
    One-shot PDF indexing into a ``CityVectorStore``.

    Parameters
    ----------
    vector_store
        An initialised ``CityVectorStore`` (injected).
    pdf_path
        Override the document.  Defaults to ``settings.PDF_PATH``.
    chunk_size, chunk_overlap
        Override the splitter parameters.
    cache_dir
        Where the hash cache lives.  Defaults to ``settings.DATA_PROCESSED_DIR``.
    """

    def __init__(self, vector_store: CityVectorStore, pdf_path: Path | None = None, chunk_size: int | None = None, chunk_overlap: int | None = None, cache_dir: Path | None = None) -> None:
        self._store = vector_store
        self._pdf_path = Path(pdf_path or settings.PDF_PATH)
        self._splitter = CharacterTextSplitter(separator="\n\n", chunk_size=chunk_size or settings.CHUNK_SIZE, chunk_overlap=settings.CHUNK_OVERLAP if chunk_overlap is None else chunk_overlap)
        self._hash_cache_path = Path(cache_dir or settings.DATA_PROCESSED_DIR) / _HASH_CACHE_NAME
        self._hash_cache: dict[str, str] = self._load_hash_cache()

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC ENTRY POINT
    # ══════════════════════════════════════════════════════════════════

    def run(self) -> dict[str, Any]:
        """
        Index the PDF.

        Returns
        -------
        dict
            ``pages``, ``total_chunks``, ``skipped`` and ``elapsed_seconds``.

        Raises
        ------
        FileNotFoundError
            If the PDF does not exist.
        """
        t_start = time.perf_counter()

        if not self._pdf_path.is_file():
            raise FileNotFoundError(f"PDF not found: {self._pdf_path}")

        file_hash = self._compute_file_hash(self._pdf_path)
        if self._hash_cache.get(self._pdf_path.name) == file_hash and self._store.is_ready():
            logger.info("CACHE_HIT — '%s' unchanged, reusing %d indexed chunk(s).", self._pdf_path.name, self._store.count())
            return self._summary(0, self._store.count(), True, time.perf_counter() - t_start)

        # Stale rows from a previous version of the document must not linger
        self._store.drop_table()

        pages = self._read_pages(self._pdf_path)
        documents: list[Document] = []
        for page_number, text in pages:
            cleaned = clean_text(text)
            if cleaned:
                documents.append(Document(page_content=cleaned, metadata={"source_file": self._pdf_path.name, "page": page_number}))
        if not documents:
            logger.warning("No extractable text in '%s'.", self._pdf_path.name)
            return self._summary(len(pages), 0, False, time.perf_counter() - t_start)

        t_split = time.perf_counter()
        chunks = self._splitter.split_documents(documents)
        logger.info("'%s' → %d page(s), %d chunk(s) in %.1fms.", self._pdf_path.name, len(pages), len(chunks), (time.perf_counter() - t_split) * 1000)

        texts = [chunk.page_content for chunk in chunks]
        metadatas = [{**chunk.metadata, "chunk_index": idx} for idx, chunk in enumerate(chunks)]

        t_embed = time.perf_counter()
        added = self._store.add_documents(texts, metadatas)
        logger.info("Embedded and stored %d chunk(s) in %.1fms.", added, (time.perf_counter() - t_embed) * 1000)

        self._hash_cache[self._pdf_path.name] = file_hash
        self._save_hash_cache()

        elapsed = time.perf_counter() - t_start
        logger.info("Index build complete in %.2fs.", elapsed)
        return self._summary(len(pages), added, False, elapsed)

    # ══════════════════════════════════════════════════════════════════
    #  PDF READING
    # ══════════════════════════════════════════════════════════════════

    @staticmethod
    def _read_pages(filepath: Path) -> list[tuple[int, str]]:
        """Return ``(page_number, text)`` pairs, 1-based, for every page."""
        reader = PdfReader(filepath)
        return [(number, page.extract_text() or "") for number, page in enumerate(reader.pages, 1)]

    # ══════════════════════════════════════════════════════════════════
    #  MD5 CACHING
    # ══════════════════════════════════════════════════════════════════

    @staticmethod
    def _compute_file_hash(filepath: Path) -> str:
        """Return the MD5 hex digest of a file's contents."""
        hasher = hashlib.md5()
        with open(filepath, "rb") as f:
            for block in iter(lambda: f.read(8192), b""):
                hasher.update(block)
        return hasher.hexdigest()

    def _load_hash_cache(self) -> dict[str, str]:
        if self._hash_cache_path.exists():
            try:
                return json.loads(self._hash_cache_path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError):
                logger.warning("Corrupt hash cache — starting fresh.")
        return {}

    def _save_hash_cache(self) -> None:
        self._hash_cache_path.parent.mkdir(parents=True, exist_ok=True)
        self._hash_cache_path.write_text(json.dumps(self._hash_cache, indent=2), encoding="utf-8")
        logger.debug("Hash cache saved to %s", self._hash_cache_path)

    def clear_hash_cache(self) -> None:
        """Forget the remembered digest so the next ``run`` rebuilds."""
        self._hash_cache = {}
        if self._hash_cache_path.exists():
            self._hash_cache_path.unlink()
            logger.warning("Hash cache deleted: %s", self._hash_cache_path)

    @staticmethod
    def _summary(pages: int, chunks: int, skipped: bool, elapsed: float) -> dict[str, Any]:
        return {
            "pages": pages,
            "total_chunks": chunks,
            "skipped": skipped,
            "elapsed_seconds": round(elapsed, 2),
        }


def build_vector_store(embedder: Embedder, pdf_path: Path | None = None, db_path: Path | None = None) -> CityVectorStore | None:
    """
    Build the index once at process start.

    Any failure is logged and yields ``None``; callers then fall back
    to web context for every request.
    """
    try:
        store = CityVectorStore(embedder, db_path=db_path)
        DocumentIndexer(store, pdf_path=pdf_path).run()
    except Exception:
        logger.exception("Error loading and processing PDF.")
        return None

    if not store.is_ready():
        logger.warning("Index is empty; requests will use the web fallback.")
        return None

    logger.info("PDF processed and vector store created: %r", store)
    return store
