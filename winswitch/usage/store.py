"""Persistent per-window usage counts.

This module provides the UsageStore class, which keeps one UsageRecord per
window identity ever selected through the switcher: how many times it was
selected, when it was last selected and the title it had at that moment.

Records live in a DocumentStore under a fixed key prefix so they can share
the store with unrelated data. Records for windows that have since closed
are kept; they are ignored because their id never shows up again.
"""

import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional

from winswitch.database.document_store import DocumentStore
from winswitch.utils.exceptions import StoreError
from winswitch.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PREFIX = "window_usage_"

def epoch_millis() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)

@dataclass(frozen=True)
class UsageRecord:
    """Usage data for one window identity."""
    window_id: str
    count: int = 0
    last_used: int = 0
    title: str = ""
    revision: Optional[str] = None

    def to_document(self, prefix: str) -> Dict[str, Any]:
        """Convert record to document format for storage."""
        document: Dict[str, Any] = {
            "_id": prefix + self.window_id,
            "window_id": self.window_id,
            "count": self.count,
            "last_used": self.last_used,
            "title": self.title,
        }
        if self.revision is not None:
            document["_rev"] = self.revision
        return document

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> 'UsageRecord':
        """Build a record from a stored document.

        Raises:
            KeyError, TypeError, ValueError: If the document is not a usage record
        """
        count = int(document["count"])
        if count < 0:
            raise ValueError(f"negative count {count}")
        return cls(
            window_id=str(document["window_id"]),
            count=count,
            last_used=int(document.get("last_used", 0)),
            title=str(document.get("title", "")),
            revision=document.get("_rev")
        )

class UsageStore:
    """Reads and records window usage in a document store."""

    def __init__(self, store: DocumentStore, prefix: str = DEFAULT_PREFIX,
                 clock: Callable[[], int] = epoch_millis):
        """Initialize the usage store.

        Args:
            store: Backing document store
            prefix: Key namespace for usage documents
            clock: Returns the current time in epoch milliseconds
        """
        self.store = store
        self.prefix = prefix
        self.clock = clock

    async def get(self, window_id: str) -> UsageRecord:
        """Get the stored record, or a zero record when the window was never used.

        The zero record is not persisted.

        Raises:
            StoreError: If the store can't be read or the stored document
                isn't a usage record
        """
        doc_id = self.prefix + window_id
        document = await self.store.get(doc_id)
        if document is None:
            return UsageRecord(window_id=window_id)
        try:
            return UsageRecord.from_document(document)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Unreadable usage document {doc_id}: {e}") from e

    async def record_usage(self, window_id: str, title: str) -> UsageRecord:
        """Count one more selection of a window.

        Returns:
            The updated record carrying its new revision

        Raises:
            StoreConflictError: If the record was changed by another writer
                since it was read. Not retried.
        """
        current = await self.get(window_id)
        updated = replace(
            current,
            count=current.count + 1,
            last_used=max(current.last_used, self.clock()),
            title=title
        )
        result = await self.store.put(updated.to_document(self.prefix))
        updated = replace(updated, revision=result["rev"])
        logger.debug(f"Recorded usage of {window_id} ({title!r}): count={updated.count}")
        return updated

    async def all_records(self) -> List[UsageRecord]:
        """Get every usage record under this store's prefix."""
        records: List[UsageRecord] = []
        for document in await self.store.list_by_prefix(self.prefix):
            if not isinstance(document, dict):
                logger.warning(f"Skipping non-object usage document: {document!r}")
                continue
            try:
                records.append(UsageRecord.from_document(document))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable usage document {document.get('_id')}: {e}")
        return records
