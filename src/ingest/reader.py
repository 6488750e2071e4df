from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Iterable, Iterator, Optional

from src.models.document import Document


@dataclass(slots=True)
class DocumentReaderConfig:
    """Configuration shared by readers that turn source files into Documents."""

    encoding: str = "utf-8"
    root: Optional[Path] = None


def document_id_for(path: Path, root: Optional[Path] = None) -> str:
    """Derive the topic identifier of ``path``: relative, ``/``-separated, suffix dropped."""

    if root is not None:
        try:
            relative = path.relative_to(root)
        except ValueError:
            relative = Path(path.name)
    else:
        relative = Path(path.name)
    posix = PurePosixPath(relative.as_posix())
    return str(posix.with_suffix("")) if posix.suffix else str(posix)


class DocumentReader(ABC):
    """Abstract base class for parsing source files into Document objects."""

    def __init__(self, config: DocumentReaderConfig | None = None) -> None:
        self.config = config or DocumentReaderConfig()

    @abstractmethod
    def build(self, document_path: Path) -> Document:
        """Parse a single file and return its Document."""

    def build_many(self, paths: Iterable[Path]) -> Iterator[Document]:
        for path in paths:
            yield self.build(path)

    def document_id(self, document_path: Path) -> str:
        return document_id_for(document_path, self.config.root)


__all__ = ["DocumentReader", "DocumentReaderConfig", "document_id_for"]
