import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

def next_revision(revision: Optional[str]) -> str:
    """Build the revision that follows ``revision`` (``<n>-<hex>``)."""
    generation = 0
    if revision:
        try:
            generation = int(revision.split('-', 1)[0])
        except ValueError:
            generation = 0
    return f"{generation + 1}-{uuid.uuid4().hex}"

class DocumentStore(ABC):
    """Interface for a persistent document-style key-value store.

    Documents are JSON-like dicts keyed by a string ``_id``. Every stored
    document carries a ``_rev`` token that changes on each write; writers
    must present the revision they read (optimistic concurrency):
    - a document without ``_rev`` may only create a new id
    - a document with ``_rev`` may only replace that exact revision
    """

    @abstractmethod
    async def get(self, doc_id: str) -> Optional[Dict[str, Any]]:
        """Retrieves a document by its id.

        Args:
            doc_id: ID of the document

        Returns:
            The document including ``_id`` and ``_rev``, or None if absent

        Raises:
            StoreError: If the store cannot be read
        """
        pass

    @abstractmethod
    async def put(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Creates or replaces a document.

        Args:
            document: Document with an ``_id`` and, when replacing, the ``_rev`` it was read at

        Returns:
            Dict[str, Any]: ``{"ok": True, "id": ..., "rev": ...}`` with the new revision

        Raises:
            StoreConflictError: If ``_rev`` doesn't match the stored revision
            StoreError: If the write fails
        """
        pass

    @abstractmethod
    async def list_by_prefix(self, prefix: str) -> List[Dict[str, Any]]:
        """Lists every document whose id starts with ``prefix``, sorted by id.

        Raises:
            StoreError: If the store cannot be read
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Releases any resources held by the store."""
        pass
