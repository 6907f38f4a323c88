"""In-memory registry of re-serialised rendering documents.

The map renderer consumes the normalised feature collection by URL rather
than by value.  Each published document gets an opaque id and a URL
under the configured prefix; it stays retrievable until its handle is
released.  Nothing is reclaimed automatically.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from incident_explorer.foundation.identifiers import new_document_id

logger = logging.getLogger(__name__)


class DocumentHandle:
    """Scoped reference to one published document.

    release() removes the document from its registry.  It is effective
    exactly once; later calls are ignored and logged.  The handle also
    works as a context manager that releases on exit.
    """

    __slots__ = ("document_id", "url", "_registry", "_released")

    def __init__(self, document_id: str, url: str, registry: DocumentRegistry) -> None:
        self.document_id = document_id
        self.url = url
        self._registry = registry
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> bool:
        if self._released:
            logger.warning("Document %s already released, ignoring", self.document_id)
            return False
        self._released = True
        self._registry._discard(self.document_id)
        return True

    def __enter__(self) -> DocumentHandle:
        return self

    def __exit__(self, *exc_info: object) -> None:
        if not self._released:
            self.release()

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"DocumentHandle(id={self.document_id}, {state})"


class DocumentRegistry:
    """Holds serialised documents keyed by id.

    Usage:
        registry = DocumentRegistry("/api/documents")
        handle = registry.publish(feature_collection)
        body = registry.get(handle.document_id)
        handle.release()
    """

    def __init__(self, url_prefix: str = "/api/documents") -> None:
        self._url_prefix = url_prefix.rstrip("/")
        self._documents: dict[str, bytes] = {}

    def publish(self, document: dict[str, Any]) -> DocumentHandle:
        """Serialise *document* to JSON and register it."""
        document_id = new_document_id()
        self._documents[document_id] = json.dumps(document, default=str).encode("utf-8")
        logger.info(
            "Published document %s (%d bytes)",
            document_id,
            len(self._documents[document_id]),
        )
        return DocumentHandle(document_id, f"{self._url_prefix}/{document_id}", self)

    def get(self, document_id: str) -> bytes | None:
        """Serialised body, or None if unknown or released."""
        return self._documents.get(document_id)

    @property
    def live_count(self) -> int:
        return len(self._documents)

    def _discard(self, document_id: str) -> None:
        self._documents.pop(document_id, None)
        logger.info("Released document %s", document_id)
