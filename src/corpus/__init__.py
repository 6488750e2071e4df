"""Document corpus backends.

Backends live in their own modules (``memory``, ``filesystem``, ``sqlite``)
and are imported from there.
"""

from .errors import CorpusError, MalformedDocument, NotFound

__all__ = ["CorpusError", "MalformedDocument", "NotFound"]
