from __future__ import annotations

from typing import List, Optional

import structlog

from src.corpus.base import Corpus
from src.corpus.config_loader import CorpusConfig, open_corpus
from src.ingest.markdown import render_markdown
from src.models.document import Document
from src.server.settings import Settings
from src.validation.checks import ValidationReport

logger = structlog.get_logger(__name__)


class CorpusService:
    """Read-only facade over a corpus for the HTTP layer."""

    def __init__(self, corpus: Corpus) -> None:
        self.corpus = corpus

    @classmethod
    def from_settings(cls, settings: Settings) -> "CorpusService":
        config = CorpusConfig(
            backend=settings.corpus_backend,
            root=settings.corpus_dir,
            pattern=settings.corpus_pattern,
            db_path=settings.sqlite_db_path,
        )
        logger.info("corpus_opened", backend=config.backend, root=str(config.root))
        return cls(open_corpus(config))

    def list_documents(self, tag: Optional[str] = None) -> List[Document]:
        documents = list(self.corpus.iter_documents())
        if tag:
            documents = [document for document in documents if tag in document.tags]
        return documents

    def get_document(self, document_id: str) -> Document:
        return self.corpus.get_document(document_id)

    def get_source(self, document_id: str) -> str:
        return render_markdown(self.corpus.get_document(document_id))

    def validate(self) -> ValidationReport:
        return self.corpus.validation_report()


__all__ = ["CorpusService"]
