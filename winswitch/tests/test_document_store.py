"""Unit tests for the document store implementations."""

import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import asyncpg

from winswitch.database.document_store import next_revision
from winswitch.database.json_store import JsonDocumentStore
from winswitch.database.postgresql import PostgreSQLDocumentStore
from winswitch.utils.exceptions import StoreConflictError, StoreError

class TestNextRevision(unittest.TestCase):

    def test_first_revision(self):
        self.assertTrue(next_revision(None).startswith("1-"))

    def test_generation_increments(self):
        self.assertTrue(next_revision("4-abc").startswith("5-"))

class TestJsonDocumentStore(unittest.IsolatedAsyncioTestCase):
    """Test cases for JsonDocumentStore."""

    async def asyncSetUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp_dir.name) / "data" / "store.json"
        self.store = JsonDocumentStore(self.path)

    async def asyncTearDown(self):
        await self.store.close()
        self.tmp_dir.cleanup()

    async def test_get_missing(self):
        self.assertIsNone(await self.store.get("nope"))

    async def test_put_and_get(self):
        result = await self.store.put({"_id": "a", "value": 1})
        self.assertTrue(result["ok"])
        self.assertEqual(result["id"], "a")

        document = await self.store.get("a")
        self.assertEqual(document["value"], 1)
        self.assertEqual(document["_rev"], result["rev"])

    async def test_update_with_current_revision(self):
        first = await self.store.put({"_id": "a", "value": 1})
        second = await self.store.put({"_id": "a", "_rev": first["rev"], "value": 2})
        self.assertNotEqual(first["rev"], second["rev"])
        self.assertTrue(second["rev"].startswith("2-"))
        self.assertEqual((await self.store.get("a"))["value"], 2)

    async def test_stale_revision_conflicts(self):
        first = await self.store.put({"_id": "a", "value": 1})
        await self.store.put({"_id": "a", "_rev": first["rev"], "value": 2})
        with self.assertRaises(StoreConflictError) as ctx:
            await self.store.put({"_id": "a", "_rev": first["rev"], "value": 3})
        self.assertEqual(ctx.exception.doc_id, "a")
        self.assertEqual((await self.store.get("a"))["value"], 2)

    async def test_create_over_existing_conflicts(self):
        await self.store.put({"_id": "a", "value": 1})
        with self.assertRaises(StoreConflictError):
            await self.store.put({"_id": "a", "value": 2})

    async def test_put_requires_id(self):
        with self.assertRaises(StoreError):
            await self.store.put({"value": 1})

    async def test_list_by_prefix_excludes_other_documents(self):
        await self.store.put({"_id": "window_usage_0x02", "n": 2})
        await self.store.put({"_id": "settings", "n": 0})
        await self.store.put({"_id": "window_usage_0x01", "n": 1})

        documents = await self.store.list_by_prefix("window_usage_")
        self.assertEqual([d["_id"] for d in documents], ["window_usage_0x01", "window_usage_0x02"])

    async def test_persists_across_instances(self):
        await self.store.put({"_id": "a", "value": 1})
        reopened = JsonDocumentStore(self.path)
        self.assertEqual((await reopened.get("a"))["value"], 1)

    async def test_returned_documents_are_copies(self):
        await self.store.put({"_id": "a", "tags": ["x"]})
        document = await self.store.get("a")
        document["tags"].append("y")
        self.assertEqual((await self.store.get("a"))["tags"], ["x"])

    async def test_corrupt_file_raises(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("{not json")
        with self.assertRaises(StoreError):
            await self.store.get("a")

    async def test_undecodable_file_raises(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(b'{"documents": {"\xff": {}}}')
        with self.assertRaises(StoreError):
            await self.store.list_by_prefix("")

    async def test_put_replaces_non_object_entry(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"documents": {"a": 5}}))
        result = await self.store.put({"_id": "a", "value": 1})
        self.assertTrue(result["rev"].startswith("1-"))

    async def test_file_layout(self):
        await self.store.put({"_id": "a", "value": 1})
        data = json.loads(self.path.read_text())
        self.assertIn("a", data["documents"])

class FakeAcquire:
    """Async context manager returned by FakePool.acquire()."""

    def __init__(self, conn):
        self.conn = conn

    async def __aenter__(self):
        return self.conn

    async def __aexit__(self, exc_type, exc, tb):
        return False

class FakePool:
    def __init__(self, rows=None):
        self.conn = MagicMock()
        self.conn.fetch = AsyncMock(return_value=rows or [])
        self.close = AsyncMock()

    def acquire(self):
        return FakeAcquire(self.conn)

class TestPostgreSQLDocumentStore(unittest.IsolatedAsyncioTestCase):
    """Test cases for PostgreSQLDocumentStore against a mocked pool."""

    def make_store(self, rows=None) -> PostgreSQLDocumentStore:
        store = PostgreSQLDocumentStore({"database": "winswitch"})
        store.pool = FakePool(rows)
        return store

    async def test_get_builds_document(self):
        store = self.make_store([{"id": "a", "rev": "1-x", "data": {"value": 1}}])
        document = await store.get("a")
        self.assertEqual(document, {"_id": "a", "_rev": "1-x", "value": 1})

    async def test_get_missing(self):
        store = self.make_store([])
        self.assertIsNone(await store.get("a"))

    async def test_insert_new_document(self):
        store = self.make_store([{"id": "a"}])
        result = await store.put({"_id": "a", "value": 1})
        self.assertTrue(result["rev"].startswith("1-"))

        query, *params = store.pool.conn.fetch.call_args.args
        self.assertIn("ON CONFLICT (id) DO NOTHING", query)
        self.assertEqual(params[0], "a")
        self.assertEqual(params[2], {"value": 1})

    async def test_update_checks_revision(self):
        store = self.make_store([{"id": "a"}])
        result = await store.put({"_id": "a", "_rev": "1-x", "value": 2})
        self.assertTrue(result["rev"].startswith("2-"))

        query, *params = store.pool.conn.fetch.call_args.args
        self.assertIn("WHERE id = $1 AND rev = $2", query)
        self.assertEqual(params[:2], ["a", "1-x"])

    async def test_no_row_written_is_a_conflict(self):
        store = self.make_store([])
        with self.assertRaises(StoreConflictError):
            await store.put({"_id": "a", "_rev": "1-x", "value": 2})

    async def test_uninitialized_store(self):
        store = PostgreSQLDocumentStore({})
        with self.assertRaises(StoreError):
            await store.get("a")

    async def test_connection_errors_become_store_errors(self):
        for error in (OSError("connection refused"), asyncpg.InterfaceError("pool is closed")):
            with self.subTest(error=type(error).__name__):
                store = self.make_store()
                store.pool.conn.fetch.side_effect = error
                with self.assertRaises(StoreError):
                    await store.get("a")

    async def test_acquire_failure_becomes_store_error(self):
        store = self.make_store()
        store.pool.acquire = MagicMock(side_effect=OSError("connection refused"))
        with self.assertRaises(StoreError):
            await store.list_by_prefix("window_usage_")

    async def test_close_releases_pool(self):
        store = self.make_store()
        pool = store.pool
        await store.close()
        pool.close.assert_awaited_once()
        self.assertIsNone(store.pool)

if __name__ == '__main__':
    unittest.main()
