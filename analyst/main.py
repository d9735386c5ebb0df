"""
SQL Analyst — natural-language query assistant for SQL Server.
Console entry point: pick a database, load its schema, start the query session.
"""
import logging
import sys
from functools import partial
from typing import Optional

from config import Settings, settings
from core.console import ConsoleTerminal, Style, Terminal, message, select_option
from core.db_connector import execute_query, list_databases, with_database
from core.errors import AnalystError
from core.query_session import QuerySession
from core.schema_cache import SchemaCache
from core.schema_extractor import SchemaExtractor
from core.schema_loader import get_database_schema
from integrations.openai_client import OpenAIClient

logger = logging.getLogger("sql_analyst")


def configure_logging(cfg: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, cfg.LOG_LEVEL.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


def choose_database(cfg: Settings, terminal: Terminal) -> str:
    """List the server's databases and let the user pick one. Returns its name."""
    terminal.write(message("\n🔍 SQL SERVER DATABASE SELECTOR", Style.TITLE))
    terminal.write(message("Connecting to SQL Server and searching for available databases...", Style.PROMPT))

    databases = list_databases(cfg.SQLSERVER_CONNECTION_STRING)
    if not databases:
        raise AnalystError("No databases found on the server.")

    terminal.write(message(f"✅ Found {len(databases)} databases", Style.SUCCESS))
    terminal.write(message("\nUse arrow keys ↑/↓ to navigate and ENTER to select a database:", Style.PROMPT))
    selected = databases[select_option(terminal, databases)]
    terminal.write(message(f"\n✅ Selected database: {selected}", Style.SUCCESS))
    return selected


def run_assistant(connection_string: str, cfg: Settings, terminal: Terminal) -> None:
    terminal.write(message("\n📊 SQL QUERY ASSISTANT", Style.TITLE))
    terminal.write(message("Connecting to SQL Server and extracting database schema...", Style.PROMPT))

    extractor = SchemaExtractor(connection_string)
    schema = get_database_schema(extractor, SchemaCache(cfg.SCHEMA_CACHE_PATH), terminal)

    terminal.write(message(f"✅ Successfully extracted schema for database: {schema.database_name}", Style.SUCCESS))
    terminal.write(message(f"📋 Found {len(schema.tables)} tables", Style.SUCCESS))

    with OpenAIClient(cfg) as llm:
        session = QuerySession(
            schema=schema,
            llm=llm,
            execute=partial(execute_query, connection_string),
            terminal=terminal,
            max_cell_width=cfg.RESULT_MAX_CELL_WIDTH,
        )
        session.run()


def main(cfg: Settings = settings, terminal: Optional[Terminal] = None) -> int:
    configure_logging(cfg)
    terminal = terminal or ConsoleTerminal()
    try:
        cfg.require_credentials()
        database = choose_database(cfg, terminal)
        run_assistant(with_database(cfg.SQLSERVER_CONNECTION_STRING, database), cfg, terminal)
    except AnalystError as e:
        terminal.write(message(f"❌ Error: {e}", Style.ERROR))
        return 1
    except KeyboardInterrupt:
        terminal.write(message("\nInterrupted.", Style.ERROR))
        return 1
    except Exception as e:
        logger.exception("Unexpected failure")
        terminal.write(message(f"❌ Error: {e}", Style.ERROR))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
