"""
City Guide - CityVectorStore
=============================
OOP wrapper around LanceDB providing a clean interface for:
  • Table creation with a strict PyArrow schema
  • Document insertion (embedding + metadata) with batching
  • Nearest-neighbour search over the embedded chunks

Design decisions:
  • **Singleton DB connection** — ``_get_connection()`` caches the
    ``lancedb.DBConnection`` per path to avoid file-lock issues.
  • **Dependency Injection** — the embedder is injected, never
    hard-coded, making the store testable with fake embedders.
  • **Lazy table creation** — the vector column is a fixed-size list,
    so the table is created on the first insert, once the embedding
    dimension is known.

Usage:
    from langchain_google_genai import GoogleGenerativeAIEmbeddings
    from cityguide.src.database.vector_store import CityVectorStore

    embedder = GoogleGenerativeAIEmbeddings(model=settings.EMBEDDING_MODEL, google_api_key=settings.GOOGLE_API_KEY.get_secret_value())
    store = CityVectorStore(embedder)
    store.add_documents(texts=[...], metadatas=[...])
    results = store.search("query text", limit=3)
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Protocol, runtime_checkable

import lancedb
import pyarrow as pa

from cityguide.config.settings import settings
from cityguide.src.utils.logger import get_logger

logger = get_logger(__name__)

# ── Type Aliases ──────────────────────────────────────────────────────
DocumentMetadata = dict[str, str | int]
DocumentRecord = dict[str, str | int | list[float]]
SearchResult = dict[str, str | int | float | list[float]]


# ── Embedder Protocol ─────────────────────────────────────────────────

@runtime_checkable
class Embedder(Protocol):
    """Structural type for any LangChain-compatible embedding model."""

    def embed_documents(self, texts: list[str]) -> list[list[float]]: ...

    def embed_query(self, text: str) -> list[float]: ...


def build_schema(dimension: int) -> pa.Schema:
    """Return the chunk table schema for vectors of *dimension* floats."""
    return pa.schema([
        pa.field("vector", pa.list_(pa.float32(), dimension)),
        pa.field("text", pa.utf8()),
        pa.field("source_file", pa.utf8()),
        pa.field("page", pa.int32()),
        pa.field("chunk_index", pa.int32()),
    ])


# ── Constants ──────────────────────────────────────────────────────────
_EMBED_BATCH_SIZE = 64
_DB_LOCK = threading.Lock()
_db_connection_cache: dict[str, lancedb.DBConnection] = {}


def _get_connection(db_path: str) -> lancedb.DBConnection:
    """Return a thread-safe **singleton** ``lancedb.DBConnection`` for *db_path*."""
    if db_path not in _db_connection_cache:
        with _DB_LOCK:
            if db_path not in _db_connection_cache:
                logger.info("Opening new LanceDB connection: %s", db_path)
                Path(db_path).mkdir(parents=True, exist_ok=True)
                _db_connection_cache[db_path] = lancedb.connect(db_path)
    return _db_connection_cache[db_path]


class CityVectorStore:
    """
    High-level abstraction over a LanceDB vector table.

    Parameters
    ----------
    embedder : Embedder
        Any object exposing ``embed_documents`` and ``embed_query``.
    db_path
        Override the database directory.  Defaults to ``settings.LANCEDB_PATH``.
    table_name
        Override the table name.  Defaults to ``settings.LANCEDB_TABLE_NAME``.
    """

    __slots__ = ("embedder", "_db_path", "_table_name", "db", "table")

    def __init__(self, embedder: Embedder, db_path: str | Path | None = None, table_name: str | None = None) -> None:
        self.embedder: Embedder = embedder
        self._db_path: str = str(db_path or settings.LANCEDB_PATH)
        self._table_name: str = table_name or settings.LANCEDB_TABLE_NAME
        self.db: lancedb.DBConnection | None = None
        self.table: lancedb.table.Table | None = None
        self._connect()


    def _connect(self) -> None:
        """Open (or re-use) the LanceDB connection and the table if it exists."""
        try:
            self.db = _get_connection(self._db_path)
            if self._table_name in self.db.table_names():
                self.table = self.db.open_table(self._table_name)
                logger.info("Opened existing table '%s' (%d rows).", self._table_name, self.table.count_rows())
            else:
                logger.info("Table '%s' does not exist yet; it is created on first insert.", self._table_name)
        except OSError as exc:
            logger.error("LanceDB filesystem error at %s: %s", self._db_path, exc)
            raise


    def add_documents(self, texts: list[str], metadatas: list[DocumentMetadata]) -> int:
        """
        Embed a batch of text chunks and persist them with metadata.

        Returns
        -------
        int
            Number of rows added.

        Raises
        ------
        ValueError
            If ``texts`` and ``metadatas`` have mismatched lengths.
        """
        if len(texts) != len(metadatas):
            raise ValueError(f"Length mismatch: {len(texts)} texts vs {len(metadatas)} metadatas.")
        if not texts:
            return 0

        logger.info("Embedding %d chunks in batches of %d …", len(texts), _EMBED_BATCH_SIZE)

        all_vectors: list[list[float]] = []
        for i in range(0, len(texts), _EMBED_BATCH_SIZE):
            batch = texts[i : i + _EMBED_BATCH_SIZE]
            try:
                all_vectors.extend(self.embedder.embed_documents(batch))
            except Exception as exc:
                logger.error("Embedding batch %d–%d failed: %s", i, i + len(batch) - 1, exc)
                raise

        records: list[DocumentRecord] = [
            {"vector": [float(x) for x in vec], "text": txt, "source_file": str(meta.get("source_file", "unknown")), "page": int(meta.get("page", 0)), "chunk_index": int(meta.get("chunk_index", idx))}
            for idx, (txt, vec, meta) in enumerate(zip(texts, all_vectors, metadatas))
        ]

        try:
            if self.table is None:
                self.table = self.db.create_table(self._table_name, schema=build_schema(len(all_vectors[0])))
                logger.info("Created table '%s' (dimension=%d).", self._table_name, len(all_vectors[0]))
            self.table.add(records)
        except OSError as exc:
            logger.error("Failed to write records to LanceDB: %s", exc)
            raise

        logger.info("Added %d chunks. Table '%s' now has %d total rows.", len(records), self._table_name, self.count())
        return len(records)


    def search(self, query_text: str, limit: int | None = None) -> list[SearchResult]:
        """
        Embed *query_text* and return the *limit* nearest chunks.

        Rows carry ``text``, ``source_file``, ``page``, ``chunk_index``
        and a ``_distance`` score (lower is closer).

        Raises
        ------
        RuntimeError
            If no table has been created yet.
        """
        if self.table is None:
            raise RuntimeError(f"Table '{self._table_name}' does not exist. Build the index first.")

        limit = limit or settings.SEARCH_RESULTS_LIMIT
        try:
            query_vector = self.embedder.embed_query(query_text)
        except Exception as exc:
            logger.error("Failed to embed query: %s", exc)
            raise

        results: list[SearchResult] = self.table.search(query_vector).limit(limit).to_list()
        logger.info("Search returned %d results (limit=%d).", len(results), limit)
        return results


    def search_if_ready(self, query_text: str, limit: int | None = None) -> list[SearchResult]:
        """Like ``search``, but an empty or missing table yields ``[]``."""
        if not self.is_ready():
            return []
        return self.search(query_text, limit)


    def count(self) -> int:
        """Return the total number of rows in the table."""
        if self.table is None:
            return 0
        return self.table.count_rows()


    def is_ready(self) -> bool:
        """True once the table exists and holds at least one chunk."""
        return self.count() > 0


    def drop_table(self) -> None:
        """Drop the vector table (used before re-indexing a changed PDF)."""
        if self.db is None:
            logger.warning("No database connection; nothing to drop.")
            return
        if self._table_name not in self.db.table_names():
            logger.warning("Table '%s' does not exist — nothing to drop.", self._table_name)
            self.table = None
            return
        try:
            self.db.drop_table(self._table_name)
            self.table = None
            logger.info("Dropped table '%s'.", self._table_name)
        except OSError as exc:
            logger.error("Filesystem error dropping table '%s': %s", self._table_name, exc)
            raise


    def __repr__(self) -> str:
        return f"CityVectorStore(db='{self._db_path}', table='{self._table_name}', rows={self.count()})"
