from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Dict, Iterator, List, Optional, Tuple

import structlog

from src.corpus.base import Corpus
from src.corpus.errors import NotFound
from src.ingest.markdown import MarkdownReader, MarkdownReaderConfig, render_markdown
from src.models.document import Document

logger = structlog.get_logger(__name__)


def _is_safe_id(document_id: str) -> bool:
    if not document_id or "\\" in document_id:
        return False
    posix = PurePosixPath(document_id)
    return not posix.is_absolute() and ".." not in posix.parts


class FileSystemCorpus(Corpus):
    """Corpus backed by markdown files under a root directory.

    Identifiers are file paths relative to ``root`` with the suffix dropped.
    When two files map to the same identifier the first one in sorted path
    order is served; validation reports the collision.
    """

    def __init__(self, root: Path, pattern: str = "**/*", reader: Optional[MarkdownReader] = None) -> None:
        self.root = Path(root)
        self.pattern = pattern
        self.reader = reader or MarkdownReader(MarkdownReaderConfig(root=self.root))
        if self.reader.config.root is None:
            self.reader.config.root = self.root

    def _scan(self) -> List[Tuple[str, Path]]:
        if not self.root.is_dir():
            return []
        paths = sorted(path for path in self.root.glob(self.pattern) if path.is_file() and self.reader.accepts(path))
        return [(self.reader.document_id(path), path) for path in paths]

    def _index(self) -> Dict[str, Path]:
        index: Dict[str, Path] = {}
        for document_id, path in self._scan():
            index.setdefault(document_id, path)
        return index

    def _iter_ids(self) -> Iterator[str]:
        return iter(sorted(self._index()))

    def _raw_ids(self) -> List[str]:
        return [document_id for document_id, _ in self._scan()]

    def path_for(self, document_id: str) -> Path:
        path = self._index().get(document_id)
        if path is None:
            raise NotFound(document_id)
        return path

    def get_document(self, document_id: str) -> Document:
        return self.reader.build(self.path_for(document_id))

    def put_document(self, document: Document) -> None:
        if not _is_safe_id(document.id):
            raise ValueError(f"Invalid document identifier: {document.id!r}")
        path = self._index().get(document.id) or self.root / f"{document.id}{self.reader.config.suffixes[0]}"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_markdown(document), encoding=self.reader.config.encoding)
        logger.info("document_written", document_id=document.id, path=str(path))


__all__ = ["FileSystemCorpus"]
