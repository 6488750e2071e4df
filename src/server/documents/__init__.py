"""Document service package."""

from .router import router, get_corpus_service

__all__ = ["router", "get_corpus_service"]
