from typing import Any, Dict

from winswitch.database.document_store import DocumentStore
from winswitch.database.json_store import JsonDocumentStore
from winswitch.database.postgresql import PostgreSQLDocumentStore
from winswitch.utils.config import get_config
from winswitch.utils.exceptions import ConfigError

async def create_document_store(config: Dict[str, Any]) -> DocumentStore:
    """Create the document store selected by ``store.type``."""
    store_type = get_config(config, "store.type", "json")
    if store_type == "json":
        return JsonDocumentStore(get_config(config, "store.path", "~/.local/share/winswitch/usage.json"))
    if store_type == "postgresql":
        return await PostgreSQLDocumentStore.create(config.get("database", {}))
    raise ConfigError(f"Unknown store type: {store_type!r}")
