from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Iterable, Iterator, List

import structlog

from src.corpus.errors import MalformedDocument, NotFound
from src.models.document import Document
from src.models.section import Section
from src.validation.checks import (
    ValidationReport,
    Violation,
    duplicate_ids,
    unreadable,
    validate_documents,
)

logger = structlog.get_logger(__name__)


class DocumentIds:
    """Lazy, restartable view over a corpus's identifiers.

    Every iteration re-reads the backing store, so documents added between
    two passes show up in the second one.
    """

    def __init__(self, factory: Callable[[], Iterator[str]]) -> None:
        self._factory = factory

    def __iter__(self) -> Iterator[str]:
        return self._factory()

    def __repr__(self) -> str:
        return f"DocumentIds({list(self)!r})"


class Corpus(ABC):
    """Abstract collection of topic documents addressed by identifier."""

    @abstractmethod
    def _iter_ids(self) -> Iterator[str]:
        """Yield unique identifiers in lexicographic order."""

    @abstractmethod
    def get_document(self, document_id: str) -> Document:
        """Return the document or raise NotFound / MalformedDocument."""

    @abstractmethod
    def put_document(self, document: Document) -> None:
        """Create or replace a document."""

    def _raw_ids(self) -> Iterable[str]:
        """Identifiers as the backend sees them, repeats included."""

        return self._iter_ids()

    # ------------------------------------------------------------------ read API
    def list_documents(self) -> DocumentIds:
        return DocumentIds(self._iter_ids)

    def iter_documents(self) -> Iterator[Document]:
        """Yield every parseable document; malformed ones are logged and skipped."""

        for document_id in self.list_documents():
            try:
                yield self.get_document(document_id)
            except MalformedDocument as exc:
                logger.warning("document_skipped", document_id=document_id, reason=exc.message)

    def validate_corpus(self) -> List[Violation]:
        return self.validation_report().violations

    def validation_report(self) -> ValidationReport:
        report = ValidationReport()
        report.violations.extend(duplicate_ids(self._raw_ids()))
        skipped: List[Violation] = []

        def readable() -> Iterator[Document]:
            for document_id in self.list_documents():
                report.documents_checked += 1
                try:
                    yield self.get_document(document_id)
                except MalformedDocument as exc:
                    skipped.append(unreadable(exc))

        checked = validate_documents(readable())
        # ids are listed in order, so a stable sort restores document order
        report.violations.extend(sorted(checked + skipped, key=lambda violation: violation.document_id))
        logger.info(
            "corpus_validated",
            documents=report.documents_checked,
            errors=len(report.errors),
            warnings=len(report.warnings),
        )
        return report

    # ------------------------------------------------------------------ authoring
    def append_section(self, document_id: str, section: Section) -> Document:
        document = self.get_document(document_id)
        document.add_section(section)
        self.put_document(document)
        return document

    def revise_section(self, document_id: str, heading: str, section: Section) -> Document:
        document = self.get_document(document_id)
        for index, existing in enumerate(document.sections):
            if existing.heading == heading:
                document.sections[index] = section
                break
        else:
            raise NotFound(document_id, section=heading)
        self.put_document(document)
        return document

    def __contains__(self, document_id: object) -> bool:
        return isinstance(document_id, str) and document_id in set(self._iter_ids())

    def __len__(self) -> int:
        return sum(1 for _ in self._iter_ids())


__all__ = ["Corpus", "DocumentIds"]
