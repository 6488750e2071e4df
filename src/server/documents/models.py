from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from src.models.document import Document
from src.models.section import Example, Section
from src.validation.checks import ValidationReport, Violation


class ExampleModel(BaseModel):
    source: str
    language: str | None = None
    caption: str | None = None
    expected_output: str | None = None
    terminated: bool = True
    line: int = 0

    @classmethod
    def from_example(cls, example: Example) -> "ExampleModel":
        return cls(
            source=example.source,
            language=example.language,
            caption=example.caption,
            expected_output=example.expected_output,
            terminated=example.terminated,
            line=example.line,
        )


class SectionModel(BaseModel):
    heading: str
    level: int
    slug: str
    body: str
    examples: List[ExampleModel] = Field(default_factory=list)

    @classmethod
    def from_section(cls, section: Section) -> "SectionModel":
        return cls(
            heading=section.heading,
            level=section.level,
            slug=section.slug,
            body=section.body,
            examples=[ExampleModel.from_example(example) for example in section.examples],
        )


class DocumentSummary(BaseModel):
    id: str
    title: str
    tags: List[str] = Field(default_factory=list)
    section_count: int = 0

    @classmethod
    def from_document(cls, document: Document) -> "DocumentSummary":
        return cls(
            id=document.id,
            title=document.title,
            tags=sorted(document.tags),
            section_count=len(document.sections),
        )


class DocumentDetail(DocumentSummary):
    digest: str
    sections: List[SectionModel] = Field(default_factory=list)

    @classmethod
    def from_document(cls, document: Document) -> "DocumentDetail":
        return cls(
            id=document.id,
            title=document.title,
            tags=sorted(document.tags),
            section_count=len(document.sections),
            digest=document.digest(),
            sections=[SectionModel.from_section(section) for section in document.sections],
        )


class DocumentListResponse(BaseModel):
    documents: List[DocumentSummary]


class DocumentSource(BaseModel):
    document_id: str
    source: str


class ViolationModel(BaseModel):
    document_id: str
    code: str
    message: str
    section: str | None = None
    line: int = 0
    severity: str
    kind: str

    @classmethod
    def from_violation(cls, violation: Violation) -> "ViolationModel":
        return cls.model_validate(violation.to_dict())


class ValidationResponse(BaseModel):
    ok: bool
    documents_checked: int
    errors: int
    warnings: int
    violations: List[ViolationModel] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: ValidationReport) -> "ValidationResponse":
        return cls.model_validate(report.to_dict())


__all__ = [
    "DocumentDetail",
    "DocumentListResponse",
    "DocumentSource",
    "DocumentSummary",
    "ExampleModel",
    "SectionModel",
    "ValidationResponse",
    "ViolationModel",
]
