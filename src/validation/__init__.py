"""Structural checks over topic documents."""

from .checks import (
    Severity,
    ValidationReport,
    Violation,
    ViolationCode,
    check_document,
    duplicate_ids,
    validate_documents,
)

__all__ = [
    "Severity",
    "ValidationReport",
    "Violation",
    "ViolationCode",
    "check_document",
    "duplicate_ids",
    "validate_documents",
]
