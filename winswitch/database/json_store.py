"""JSON file implementation of the document store."""

import asyncio
import copy
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import aiofiles
import aiofiles.os

from winswitch.database.document_store import DocumentStore, next_revision
from winswitch.utils.exceptions import StoreConflictError, StoreError
from winswitch.utils.logging import get_logger

logger = get_logger(__name__)

class JsonDocumentStore(DocumentStore):
    """Stores all documents in a single JSON file.

    The file is re-read on every operation so that revisions written by
    another process are seen, and replaced atomically on every write.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()
        self._lock = asyncio.Lock()

    async def _read(self) -> Dict[str, Dict[str, Any]]:
        if not self.path.exists():
            return {}
        try:
            async with aiofiles.open(self.path, 'r', encoding='utf-8') as f:
                raw = await f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise StoreError(f"Failed to read {self.path}: {e}") from e

        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupt document store at {self.path}: {e}") from e

        documents = data.get("documents") if isinstance(data, dict) else None
        if not isinstance(documents, dict):
            raise StoreError(f"Document store at {self.path} has no 'documents' object")
        return documents

    async def _write(self, documents: Dict[str, Dict[str, Any]]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(tmp_path, 'w', encoding='utf-8') as f:
                await f.write(json.dumps({"documents": documents}, indent=2, sort_keys=True))
            await aiofiles.os.replace(tmp_path, self.path)
        except OSError as e:
            raise StoreError(f"Failed to write {self.path}: {e}") from e

    async def get(self, doc_id: str) -> Optional[Dict[str, Any]]:
        async with self._lock:
            documents = await self._read()
        document = documents.get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    async def put(self, document: Dict[str, Any]) -> Dict[str, Any]:
        doc_id = document.get("_id")
        if not doc_id:
            raise StoreError("Document has no _id")

        async with self._lock:
            documents = await self._read()
            current = documents.get(doc_id)
            current_rev = current.get("_rev") if isinstance(current, dict) else None
            expected_rev = document.get("_rev")

            if expected_rev != current_rev:
                raise StoreConflictError(
                    f"Revision conflict on {doc_id}: expected {expected_rev}, stored {current_rev}",
                    doc_id=doc_id
                )

            new_rev = next_revision(current_rev)
            stored = copy.deepcopy(document)
            stored["_rev"] = new_rev
            documents[doc_id] = stored
            await self._write(documents)

        logger.debug(f"Stored {doc_id} at revision {new_rev}")
        return {"ok": True, "id": doc_id, "rev": new_rev}

    async def list_by_prefix(self, prefix: str) -> List[Dict[str, Any]]:
        async with self._lock:
            documents = await self._read()
        return [
            copy.deepcopy(documents[doc_id])
            for doc_id in sorted(documents)
            if doc_id.startswith(prefix)
        ]

    async def close(self) -> None:
        # Nothing is held open between operations
        pass
