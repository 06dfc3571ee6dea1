import pytest

from cityguide.src.core.ingestor import DocumentIndexer, build_vector_store


def _paragraph(i):
    return " ".join(f"Mangalore fact {i}." for _ in range(20))


LONG_PAGE = "\n\n".join(_paragraph(i) for i in range(6))
SHORT_PAGE = "Tulu is widely spoken in Mangalore."


@pytest.fixture
def pdf(tmp_path):
    path = tmp_path / "guide.pdf"
    path.write_bytes(b"%PDF-1.4 version one")
    return path


@pytest.fixture
def pages(monkeypatch):
    content = [(1, LONG_PAGE), (2, "   "), (3, SHORT_PAGE)]
    monkeypatch.setattr(DocumentIndexer, "_read_pages", staticmethod(lambda path: list(content)))
    return content


def _indexer(store, pdf, tmp_path):
    return DocumentIndexer(store, pdf_path=pdf, chunk_size=1000, chunk_overlap=200, cache_dir=tmp_path / "processed")


def test_run_splits_pages_and_stores_chunks(store, pdf, pages, tmp_path):
    summary = _indexer(store, pdf, tmp_path).run()

    assert summary["pages"] == 3
    assert summary["skipped"] is False
    assert summary["total_chunks"] == store.count()
    assert store.count() >= 3

    rows = store.search(SHORT_PAGE, limit=1)
    assert rows[0]["text"] == SHORT_PAGE
    assert rows[0]["page"] == 3
    assert rows[0]["source_file"] == "guide.pdf"


def test_chunks_respect_chunk_size(store, pdf, pages, tmp_path):
    _indexer(store, pdf, tmp_path).run()

    rows = store.table.to_arrow().to_pylist()
    assert all(len(row["text"]) <= 1000 for row in rows)
    assert {row["page"] for row in rows} == {1, 3}


def test_unchanged_pdf_is_not_reembedded(store, embedder, pdf, pages, tmp_path):
    _indexer(store, pdf, tmp_path).run()
    calls = embedder.document_calls

    summary = _indexer(store, pdf, tmp_path).run()

    assert summary["skipped"] is True
    assert embedder.document_calls == calls


def test_changed_pdf_rebuilds_from_scratch(store, pdf, pages, tmp_path):
    _indexer(store, pdf, tmp_path).run()
    first_count = store.count()

    pdf.write_bytes(b"%PDF-1.4 version two")
    summary = _indexer(store, pdf, tmp_path).run()

    assert summary["skipped"] is False
    assert store.count() == first_count


def test_missing_pdf_raises(store, tmp_path):
    indexer = DocumentIndexer(store, pdf_path=tmp_path / "missing.pdf", cache_dir=tmp_path)
    with pytest.raises(FileNotFoundError):
        indexer.run()


def test_pdf_without_text_stores_nothing(store, pdf, monkeypatch, tmp_path):
    monkeypatch.setattr(DocumentIndexer, "_read_pages", staticmethod(lambda path: [(1, ""), (2, " \n ")]))

    summary = _indexer(store, pdf, tmp_path).run()

    assert summary["total_chunks"] == 0
    assert not store.is_ready()


def test_build_vector_store_returns_none_on_failure(embedder, tmp_path):
    assert build_vector_store(embedder, pdf_path=tmp_path / "missing.pdf", db_path=tmp_path / "db") is None


def test_build_vector_store_returns_ready_store(embedder, pdf, pages, tmp_path, monkeypatch):
    from cityguide.config.settings import settings

    monkeypatch.setattr(settings, "DATA_PROCESSED_DIR", tmp_path / "processed")

    store = build_vector_store(embedder, pdf_path=pdf, db_path=tmp_path / "db")

    assert store is not None
    assert store.is_ready()
