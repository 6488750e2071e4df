from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Set

from src.models.section import Example, Section


@dataclass(slots=True)
class Document:
    """One topic document: a title, topic tags and an ordered list of sections.

    ``id`` is the topic path relative to the corpus root, ``/``-separated and
    without a file suffix (``"operators"``, ``"basics/functions"``).
    """

    id: str
    title: str
    tags: Set[str] = field(default_factory=set)
    sections: List[Section] = field(default_factory=list)

    def add_section(self, section: Section) -> None:
        self.sections.append(section)

    def find_section(self, heading: str) -> Optional[Section]:
        for section in self.sections:
            if section.heading == heading:
                return section
        return None

    def headings(self) -> List[str]:
        return [section.heading for section in self.sections if not section.is_preamble]

    def examples(self) -> Iterator[Example]:
        for section in self.sections:
            yield from section.examples

    def structure(self) -> tuple:
        """Comparable shape of the document, ignoring source line numbers."""

        return (
            self.id,
            self.title,
            tuple(sorted(self.tags)),
            tuple(section.structure() for section in self.sections),
        )

    def digest(self) -> str:
        """Content address: sha256 of the rendered markdown."""

        from src.ingest.markdown import render_markdown

        return hashlib.sha256(render_markdown(self).encode("utf-8")).hexdigest()


__all__ = ["Document"]
