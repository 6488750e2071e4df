from __future__ import annotations

import copy
from typing import Dict, Iterable, Iterator, Optional

from src.corpus.base import Corpus
from src.corpus.errors import NotFound
from src.models.document import Document


class InMemoryCorpus(Corpus):
    """Dict-backed corpus. Documents are copied in and out so callers cannot mutate the store."""

    def __init__(self, documents: Optional[Iterable[Document]] = None) -> None:
        self._documents: Dict[str, Document] = {}
        for document in documents or ():
            self.put_document(document)

    def _iter_ids(self) -> Iterator[str]:
        return iter(sorted(self._documents))

    def get_document(self, document_id: str) -> Document:
        try:
            return copy.deepcopy(self._documents[document_id])
        except KeyError:
            raise NotFound(document_id) from None

    def put_document(self, document: Document) -> None:
        self._documents[document.id] = copy.deepcopy(document)


__all__ = ["InMemoryCorpus"]
