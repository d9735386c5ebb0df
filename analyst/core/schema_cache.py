"""
Schema cache — one JSON file mapping connection-string hashes to serialized schemas.
Entries never expire; delete the file to force a fresh extraction.
"""
import hashlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from core.errors import CacheError
from models.schema import DatabaseSchema

logger = logging.getLogger(__name__)

_cache_adapter = TypeAdapter(dict[str, DatabaseSchema])


def compute_hash(connection_string: str) -> str:
    """SHA-256 hex digest of the connection string, used as the cache key."""
    return hashlib.sha256(connection_string.encode("utf-8")).hexdigest()


class SchemaCache:
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read_entries(self) -> dict[str, DatabaseSchema]:
        """Parse the whole cache file. Raises OSError / ValueError on a bad file."""
        if not self.path.exists():
            return {}
        return _cache_adapter.validate_json(self.path.read_bytes())

    def load(self, connection_string: str) -> Optional[DatabaseSchema]:
        """
        Return the cached schema for this connection, or None when it is not cached.
        Raises CacheError when the cache file exists but cannot be read or parsed.
        """
        try:
            entries = self._read_entries()
        except (OSError, ValueError) as e:
            raise CacheError(f"Cache read error: {e}") from e
        return entries.get(compute_hash(connection_string))

    def store(self, connection_string: str, schema: DatabaseSchema) -> None:
        """Add or replace this connection's entry, keeping every other cached schema."""
        try:
            entries = self._read_entries()
        except (OSError, ValueError) as e:
            logger.warning("Discarding unreadable cache file %s: %s", self.path, e)
            entries = {}
        entries[compute_hash(connection_string)] = schema

        payload = {key: value.model_dump(mode="json") for key, value in entries.items()}
        directory = self.path.parent
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".schema_cache.", suffix=".tmp", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            raise CacheError(f"Failed to write schema cache {self.path}: {e}") from e
        logger.info("Cached schema for %s (%d entries)", schema.database_name, len(entries))
