"""
City Guide - Index Build Script
================================
CLI entry point that builds the PDF embedding index ahead of time, so
the server start reuses it instead of embedding the document again:
    1. Load settings (fail-fast on a missing ``GOOGLE_API_KEY``).
    2. Initialise the embedder and ``CityVectorStore``.
    3. Optionally drop the table.
    4. Run the ``DocumentIndexer`` and print a summary.

Flags:
    --drop       Drop the table and forget the PDF digest, then rebuild.
    --drop-only  Drop the table and exit.

Usage:
    python -m cityguide.scripts.build_index
    python -m cityguide.scripts.build_index --drop
    cityguide-index --drop-only
"""

from __future__ import annotations

import argparse
import sys
import time


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="build_index", description="City Guide — build the PDF embedding index.")
    parser.add_argument("--drop", action="store_true", default=False, help="Drop the table and forget the PDF digest before building.")
    parser.add_argument("--drop-only", action="store_true", default=False, help="Drop the table and exit (no indexing).")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    t_start = time.perf_counter()

    try:
        from cityguide.config.settings import settings
    except Exception as exc:
        print("\n[FATAL] Configuration error — check your .env file:\n")
        print(f"  {exc}")
        print()
        return 1

    # Settings are valid, so the logger can be imported now
    from cityguide.src.utils.logger import get_logger
    logger = get_logger(__name__)

    _print_header(settings)

    try:
        from langchain_google_genai import GoogleGenerativeAIEmbeddings

        embedder = GoogleGenerativeAIEmbeddings(model=settings.EMBEDDING_MODEL, google_api_key=settings.GOOGLE_API_KEY.get_secret_value())
    except Exception:
        logger.exception("Failed to initialise embedding model.")
        return 1

    from cityguide.src.core.ingestor import DocumentIndexer
    from cityguide.src.database.vector_store import CityVectorStore

    store = CityVectorStore(embedder=embedder)
    indexer = DocumentIndexer(store)

    if args.drop or args.drop_only:
        logger.warning("Dropping table '%s' as requested.", settings.LANCEDB_TABLE_NAME)
        store.drop_table()
        indexer.clear_hash_cache()
        if args.drop_only:
            logger.info("--drop-only: Table dropped. Exiting.")
            return 0

    try:
        summary = indexer.run()
    except FileNotFoundError as exc:
        logger.error("%s", exc)
        return 1

    _print_footer(summary, time.perf_counter() - t_start)
    return 0


# ── Pretty-print helpers ──────────────────────────────────────────────

def _print_header(settings: object) -> None:
    api_key_val = settings.GOOGLE_API_KEY.get_secret_value()  # type: ignore[attr-defined]
    masked = f"****{api_key_val[-4:]}" if len(api_key_val) > 4 else "****"

    print()
    print("=" * 60)
    print("  CITY GUIDE — Index Build")
    print("=" * 60)
    print(f"  Environment  : {settings.ENV}")                   # type: ignore[attr-defined]
    print(f"  Document     : {settings.PDF_PATH}")              # type: ignore[attr-defined]
    print(f"  Embedding    : {settings.EMBEDDING_MODEL}")       # type: ignore[attr-defined]
    print(f"  LanceDB path : {settings.LANCEDB_PATH}")          # type: ignore[attr-defined]
    print(f"  Chunk size   : {settings.CHUNK_SIZE} chars (overlap {settings.CHUNK_OVERLAP})")  # type: ignore[attr-defined]
    print(f"  API Key      : {masked}")
    print("=" * 60)
    print()


def _print_footer(summary: dict[str, object], elapsed: float) -> None:
    print()
    print("=" * 60)
    print("  EXECUTION SUMMARY")
    print("-" * 60)
    print(f"  Pages read           : {summary['pages']}")
    print(f"  Chunks indexed       : {summary['total_chunks']}")
    print(f"  Skipped (unchanged)  : {'yes' if summary['skipped'] else 'no'}")
    print(f"  Total elapsed        : {elapsed:>8.2f}s")
    print("=" * 60)
    print()


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
