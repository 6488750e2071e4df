"""Reading and writing topic documents as markdown."""

from .reader import DocumentReader, DocumentReaderConfig, document_id_for
from .markdown import MarkdownReader, MarkdownReaderConfig, parse_markdown, render_markdown

__all__ = [
    "DocumentReader",
    "DocumentReaderConfig",
    "MarkdownReader",
    "MarkdownReaderConfig",
    "document_id_for",
    "parse_markdown",
    "render_markdown",
]
