import importlib

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from src.corpus.filesystem import FileSystemCorpus
from src.corpus.memory import InMemoryCorpus
from src.ingest.markdown import parse_markdown
from src.server.documents.router import get_document, get_document_source, list_documents, validate_corpus
from src.server.documents.service import CorpusService
from src.server.settings import Settings

documents_router_module = importlib.import_module("src.server.documents.router")


def _service() -> CorpusService:
    operators = parse_markdown(
        "---\ntags: [operators]\n---\n# Operators\n\n## Arithmetic\n\n```python\n1 + 1\n```\n\n```output\n2\n```\n",
        "operators",
    )
    control = parse_markdown("# Control Structures\n\n## Loops\n\nUse for.\n", "control_structures")
    return CorpusService(InMemoryCorpus([operators, control]))


def test_list_and_filter_documents():
    service = _service()

    response = list_documents(tag=None, service=service)
    assert [doc.id for doc in response.documents] == ["control_structures", "operators"]
    assert response.documents[1].tags == ["operators"]
    assert response.documents[1].section_count == 2

    filtered = list_documents(tag="operators", service=service)
    assert [doc.id for doc in filtered.documents] == ["operators"]


def test_get_document_detail_and_source():
    service = _service()

    detail = get_document("operators", service=service)
    assert detail.title == "Operators"
    assert [section.slug for section in detail.sections] == ["operators", "arithmetic"]
    assert detail.sections[1].examples[0].expected_output == "2"
    assert len(detail.digest) == 64

    source = get_document_source("operators", service=service)
    assert source.document_id == "operators"
    assert "## Arithmetic" in source.source


def test_missing_document_is_404():
    service = _service()

    with pytest.raises(HTTPException) as excinfo:
        get_document("nonexistent", service=service)
    assert excinfo.value.status_code == 404

    with pytest.raises(HTTPException) as excinfo:
        get_document_source("nonexistent", service=service)
    assert excinfo.value.status_code == 404


def test_malformed_document_is_422_and_reported(tmp_path):
    (tmp_path / "broken.md").write_text("---\ntitle: never closed\n", encoding="utf-8")
    (tmp_path / "errors.md").write_text("# Errors\n\n## Try\n\n```python\ntry:\n", encoding="utf-8")
    service = CorpusService(FileSystemCorpus(tmp_path))

    with pytest.raises(HTTPException) as excinfo:
        get_document("broken", service=service)
    assert excinfo.value.status_code == 422

    assert [doc.id for doc in list_documents(tag=None, service=service).documents] == ["errors"]

    report = validate_corpus(service=service)
    assert not report.ok
    assert report.documents_checked == 2
    assert [(v.document_id, v.code) for v in report.violations] == [
        ("broken", "unreadable"),
        ("errors", "unterminated_fence"),
    ]


def test_service_resolves_from_settings(tmp_path, monkeypatch):
    (tmp_path / "operators.md").write_text("# Operators\n", encoding="utf-8")
    monkeypatch.setattr(documents_router_module, "_CORPUS_SERVICE", None)

    settings = Settings(corpus_dir=tmp_path, corpus_backend="filesystem")
    service = documents_router_module.get_corpus_service(settings)

    assert service is documents_router_module.get_corpus_service(settings)
    assert list(service.corpus.list_documents()) == ["operators"]


def test_settings_validation(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "http://a.example, http://b.example")
    settings = Settings()
    assert settings.cors_origins == ["http://a.example", "http://b.example"]

    monkeypatch.delenv("CORS_ORIGINS")
    assert Settings().cors_origins == ["http://localhost:5173", "http://localhost:5174"]

    with pytest.raises(ValidationError):
        Settings(corpus_backend="postgres")
    with pytest.raises(ValidationError):
        Settings(log_format="xml")


def test_ids_ending_in_source_are_documents(tmp_path):
    (tmp_path / "guide").mkdir()
    (tmp_path / "guide" / "source.md").write_text("# Reading Source\n\nText.\n", encoding="utf-8")
    (tmp_path / "guide.md").write_text("# Guide\n", encoding="utf-8")
    service = CorpusService(FileSystemCorpus(tmp_path))

    assert get_document("guide/source", service=service).title == "Reading Source"
    assert get_document_source("guide/source", service=service).source.startswith("# Reading Source")

    matching = [
        route.name
        for route in documents_router_module.router.routes
        if route.path_regex.match("/api/documents/guide/source")
    ]
    assert matching == ["get_document"]
