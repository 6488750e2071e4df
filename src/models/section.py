from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional


_SLUG_STRIP = re.compile(r"[^\w\s-]")
_SLUG_JOIN = re.compile(r"[\s_-]+")


def slugify(heading: str, fallback: str = "section") -> str:
    """Anchor-style slug for a heading."""

    slug = _SLUG_JOIN.sub("-", _SLUG_STRIP.sub("", heading).strip().lower()).strip("-")
    return slug or fallback


@dataclass(slots=True)
class Example:
    """Illustrative snippet attached to a section. Never executed."""

    source: str
    language: Optional[str] = None
    caption: Optional[str] = None
    expected_output: Optional[str] = None
    terminated: bool = True
    line: int = 0

    def structure(self) -> tuple:
        return (self.source, self.language, self.caption, self.expected_output, self.terminated)


@dataclass(slots=True)
class Section:
    """A titled subdivision of a document, owned by exactly one document."""

    heading: str
    level: int
    body: str = ""
    examples: List[Example] = field(default_factory=list)
    line: int = 0

    @property
    def slug(self) -> str:
        return slugify(self.heading)

    @property
    def is_preamble(self) -> bool:
        return self.level == 0

    def add_example(self, example: Example) -> None:
        self.examples.append(example)

    def structure(self) -> tuple:
        return (
            self.heading,
            self.level,
            self.body,
            tuple(example.structure() for example in self.examples),
        )


__all__ = ["Example", "Section", "slugify"]
