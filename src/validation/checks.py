"""Structural validation of topic documents."""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from src.corpus.errors import MalformedDocument
from src.models.document import Document

MALFORMED_DOCUMENT = "MalformedDocument"


class ViolationCode(str, Enum):
    EMPTY_TITLE = "empty_title"
    DUPLICATE_ID = "duplicate_id"
    UNTERMINATED_FENCE = "unterminated_fence"
    EMPTY_HEADING = "empty_heading"
    HEADING_JUMP = "heading_jump"
    UNREADABLE = "unreadable"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(slots=True, frozen=True)
class Violation:
    """One structural problem found in a document."""

    document_id: str
    code: ViolationCode
    message: str
    section: Optional[str] = None
    line: int = 0
    severity: Severity = Severity.ERROR
    kind: str = MALFORMED_DOCUMENT

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["code"] = self.code.value
        payload["severity"] = self.severity.value
        return payload


@dataclass
class ValidationReport:
    """Violations split by severity. Errors fail a strict build, warnings are printed."""

    violations: List[Violation] = field(default_factory=list)
    documents_checked: int = 0

    @property
    def errors(self) -> List[Violation]:
        return [v for v in self.violations if v.severity is Severity.ERROR]

    @property
    def warnings(self) -> List[Violation]:
        return [v for v in self.violations if v.severity is Severity.WARNING]

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "documents_checked": self.documents_checked,
            "errors": len(self.errors),
            "warnings": len(self.warnings),
            "violations": [v.to_dict() for v in self.violations],
        }


def check_document(document: Document) -> List[Violation]:
    """Return the violations for a single parsed document, in document order."""

    violations: List[Violation] = []
    if not document.title.strip():
        violations.append(
            Violation(
                document_id=document.id,
                code=ViolationCode.EMPTY_TITLE,
                message="document has no title",
            )
        )

    previous_level = 0
    for section in document.sections:
        label = section.heading or None
        if section.level > 0 and not section.heading.strip():
            violations.append(
                Violation(
                    document_id=document.id,
                    code=ViolationCode.EMPTY_HEADING,
                    message=f"level {section.level} heading has no text",
                    line=section.line,
                )
            )
        if section.level > 0:
            if previous_level and section.level > previous_level + 1:
                violations.append(
                    Violation(
                        document_id=document.id,
                        code=ViolationCode.HEADING_JUMP,
                        message=f"heading jumps from level {previous_level} to {section.level}",
                        section=label,
                        line=section.line,
                        severity=Severity.WARNING,
                    )
                )
            previous_level = section.level
        for example in section.examples:
            if not example.terminated:
                violations.append(
                    Violation(
                        document_id=document.id,
                        code=ViolationCode.UNTERMINATED_FENCE,
                        message="fenced example block is never closed",
                        section=label,
                        line=example.line,
                    )
                )
    return violations


def unreadable(error: MalformedDocument) -> Violation:
    return Violation(
        document_id=error.document_id,
        code=ViolationCode.UNREADABLE,
        message=error.message,
        section=error.section,
        line=error.line,
    )


def duplicate_ids(raw_ids: Iterable[str]) -> List[Violation]:
    """Report every identifier produced more than once by a backend scan."""

    counts = Counter(raw_ids)
    return [
        Violation(
            document_id=document_id,
            code=ViolationCode.DUPLICATE_ID,
            message=f"identifier is used by {count} sources",
        )
        for document_id, count in sorted(counts.items())
        if count > 1
    ]


def validate_documents(documents: Iterable[Document]) -> List[Violation]:
    violations: List[Violation] = []
    for document in documents:
        violations.extend(check_document(document))
    return violations


__all__ = [
    "MALFORMED_DOCUMENT",
    "Severity",
    "ValidationReport",
    "Violation",
    "ViolationCode",
    "check_document",
    "duplicate_ids",
    "unreadable",
    "validate_documents",
]
