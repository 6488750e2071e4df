from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from src.corpus.errors import MalformedDocument, NotFound
from src.server.documents.models import (
    DocumentDetail,
    DocumentListResponse,
    DocumentSource,
    DocumentSummary,
    ValidationResponse,
)
from src.server.documents.service import CorpusService
from src.server.settings import Settings, get_settings


router = APIRouter(prefix="/api", tags=["documents"])


def _resolve_service(settings: Settings) -> CorpusService:
    global _CORPUS_SERVICE
    if _CORPUS_SERVICE is None:
        _CORPUS_SERVICE = CorpusService.from_settings(settings)
    return _CORPUS_SERVICE


def get_corpus_service(settings: Settings = Depends(get_settings)) -> CorpusService:
    return _resolve_service(settings)


_CORPUS_SERVICE: CorpusService | None = None


def _guarded(lookup, document_id: str):
    try:
        return lookup(document_id)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail="Document not found") from exc
    except MalformedDocument as exc:
        raise HTTPException(status_code=422, detail=f"Malformed document: {exc.message}") from exc


@router.get("/documents", response_model=DocumentListResponse)
def list_documents(
    tag: str | None = Query(default=None, description="Only documents carrying this topic tag"),
    service: CorpusService = Depends(get_corpus_service),
) -> DocumentListResponse:
    documents = service.list_documents(tag=tag)
    return DocumentListResponse(documents=[DocumentSummary.from_document(doc) for doc in documents])


@router.get("/sources/{document_id:path}", response_model=DocumentSource)
def get_document_source(
    document_id: str,
    service: CorpusService = Depends(get_corpus_service),
) -> DocumentSource:
    source = _guarded(service.get_source, document_id)
    return DocumentSource(document_id=document_id, source=source)


@router.get("/documents/{document_id:path}", response_model=DocumentDetail)
def get_document(
    document_id: str,
    service: CorpusService = Depends(get_corpus_service),
) -> DocumentDetail:
    return DocumentDetail.from_document(_guarded(service.get_document, document_id))


@router.get("/validation", response_model=ValidationResponse)
def validate_corpus(service: CorpusService = Depends(get_corpus_service)) -> ValidationResponse:
    return ValidationResponse.from_report(service.validate())


__all__ = ["router", "get_corpus_service"]
