"""Topic document corpus: markdown guides parsed into documents, sections and examples."""

from .models.document import Document
from .models.section import Example, Section

__all__ = ["Document", "Example", "Section"]
