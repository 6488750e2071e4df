from __future__ import annotations

from typing import Optional


class CorpusError(Exception):
    """Base class for corpus lookup and parsing failures."""


class NotFound(CorpusError, KeyError):
    """Raised when a document (or a section within it) is absent."""

    def __init__(self, document_id: str, section: Optional[str] = None) -> None:
        self.document_id = document_id
        self.section = section
        super().__init__(document_id)

    def __str__(self) -> str:
        if self.section is not None:
            return f"Section {self.section!r} not found in document {self.document_id!r}"
        return f"Document not found: {self.document_id!r}"


class MalformedDocument(CorpusError, ValueError):
    """Raised when a document source cannot be turned into a Document."""

    def __init__(
        self,
        document_id: str,
        message: str,
        *,
        section: Optional[str] = None,
        line: int = 0,
    ) -> None:
        self.document_id = document_id
        self.message = message
        self.section = section
        self.line = line
        super().__init__(f"{document_id}: {message}")


__all__ = ["CorpusError", "MalformedDocument", "NotFound"]
