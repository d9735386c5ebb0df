"""Cache-or-extract: return the cached schema for a connection, extracting it on a miss."""
import logging

from core.console import Style, Terminal, message
from core.errors import CacheError
from core.schema_cache import SchemaCache
from core.schema_extractor import SchemaExtractor
from models.schema import DatabaseSchema

logger = logging.getLogger(__name__)


def get_database_schema(
    extractor: SchemaExtractor,
    cache: SchemaCache,
    terminal: Terminal,
) -> DatabaseSchema:
    """
    Look up the extractor's connection in the cache; on a miss extract a fresh schema
    and cache it. Cache problems are reported and skipped; extraction errors propagate.
    """
    connection_string = extractor.connection_string

    try:
        cached = cache.load(connection_string)
    except CacheError as e:
        logger.warning("Schema cache read failed: %s", e)
        terminal.write(message(f"Warning: {e}. Will extract fresh schema.", Style.ERROR))
        cached = None
    if cached is not None:
        terminal.write(message("Using cached database schema", Style.SUCCESS))
        return cached

    terminal.write(message("Extracting fresh database schema...", Style.PROMPT))
    schema = extractor.extract()
    for warning in extractor.warnings:
        terminal.write(message(f"Warning: {warning}", Style.ERROR))

    try:
        cache.store(connection_string, schema)
        terminal.write(message("Schema cached for future use", Style.SUCCESS))
    except CacheError as e:
        logger.warning("Schema cache write failed: %s", e)
        terminal.write(message(f"Warning: Failed to cache schema: {e}", Style.ERROR))

    return schema
