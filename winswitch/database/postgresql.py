"""PostgreSQL implementation of the document store."""

import json
from typing import Any, Dict, List, Optional

import asyncpg

from winswitch.database.document_store import DocumentStore, next_revision
from winswitch.utils.exceptions import StoreConflictError, StoreError
from winswitch.utils.logging import get_logger

logger = get_logger(__name__)

class PostgreSQLDocumentStore(DocumentStore):
    """Stores documents as JSONB rows with a revision column."""

    def __init__(self, config: Dict[str, Any], table: str = "documents"):
        """Initialize basic configuration.

        Args:
            config: Database configuration (host, database, user, password)
            table: Table holding the documents
        """
        self.config = config
        self.table = table
        self.pool: Optional[asyncpg.Pool] = None

    @classmethod
    async def create(cls, config: Dict[str, Any]) -> 'PostgreSQLDocumentStore':
        """Create and initialize a new store instance.

        Raises:
            StoreError: If the database connection fails
        """
        store = cls(config)
        await store.initialize()
        return store

    async def initialize(self) -> None:
        """Initialize the connection pool and the documents table."""
        conn_params = {
            "host": self.config.get("host", "localhost"),
            "database": self.config.get("database"),
            "user": self.config.get("user"),
            "password": self.config.get("password") or None,
            "command_timeout": 60,
            "server_settings": {
                "application_name": "winswitch"
            }
        }

        try:
            # First try a single connection to check the database exists
            try:
                conn = await asyncpg.connect(**conn_params)
                await conn.close()
            except asyncpg.InvalidCatalogNameError:
                sys_conn_params = conn_params.copy()
                sys_conn_params["database"] = "postgres"  # Connect to default db
                sys_conn = await asyncpg.connect(**sys_conn_params)
                try:
                    await sys_conn.execute(f'CREATE DATABASE "{conn_params["database"]}"')
                finally:
                    await sys_conn.close()

            self.pool = await asyncpg.create_pool(**conn_params, init=self._setup_connection)
        except (asyncpg.PostgresError, OSError) as e:
            raise StoreError(f"Database connection failed: {e}") from e

        await self._execute(f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                id TEXT PRIMARY KEY,
                rev TEXT NOT NULL,
                data JSONB NOT NULL,
                updated_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP
            )""")

    async def _setup_connection(self, connection: asyncpg.Connection) -> None:
        """Set up a new database connection with a JSONB codec."""
        await connection.set_type_codec(
            'jsonb',
            encoder=json.dumps,
            decoder=json.loads,
            schema='pg_catalog'
        )

    async def _execute(self, query: str, *params: Any) -> List[Dict[str, Any]]:
        """Execute a query and return results."""
        if self.pool is None:
            raise StoreError("Database store is not initialized")
        try:
            async with self.pool.acquire() as conn:
                result = await conn.fetch(query, *params)
                return [dict(row) for row in result]
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            raise StoreError(f"Query execution failed: {e}") from e

    @staticmethod
    def _to_document(row: Dict[str, Any]) -> Dict[str, Any]:
        document = dict(row["data"])
        document["_id"] = row["id"]
        document["_rev"] = row["rev"]
        return document

    async def get(self, doc_id: str) -> Optional[Dict[str, Any]]:
        rows = await self._execute(
            f"SELECT id, rev, data FROM {self.table} WHERE id = $1", doc_id
        )
        return self._to_document(rows[0]) if rows else None

    async def put(self, document: Dict[str, Any]) -> Dict[str, Any]:
        doc_id = document.get("_id")
        if not doc_id:
            raise StoreError("Document has no _id")

        expected_rev = document.get("_rev")
        new_rev = next_revision(expected_rev)
        data = {k: v for k, v in document.items() if k not in ("_id", "_rev")}

        if expected_rev is None:
            rows = await self._execute(
                f"""
                INSERT INTO {self.table} (id, rev, data)
                VALUES ($1, $2, $3)
                ON CONFLICT (id) DO NOTHING
                RETURNING id
                """,
                doc_id, new_rev, data
            )
        else:
            rows = await self._execute(
                f"""
                UPDATE {self.table}
                SET rev = $3, data = $4, updated_at = CURRENT_TIMESTAMP
                WHERE id = $1 AND rev = $2
                RETURNING id
                """,
                doc_id, expected_rev, new_rev, data
            )

        if not rows:
            raise StoreConflictError(
                f"Revision conflict on {doc_id}: expected {expected_rev}",
                doc_id=doc_id
            )
        logger.debug(f"Stored {doc_id} at revision {new_rev}")
        return {"ok": True, "id": doc_id, "rev": new_rev}

    async def list_by_prefix(self, prefix: str) -> List[Dict[str, Any]]:
        rows = await self._execute(
            f"SELECT id, rev, data FROM {self.table} WHERE left(id, length($1)) = $1 ORDER BY id",
            prefix
        )
        return [self._to_document(row) for row in rows]

    async def close(self) -> None:
        if self.pool is not None:
            await self.pool.close()
            self.pool = None
