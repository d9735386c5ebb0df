"""
Database connector — SQLAlchemy engine factory for SQL Server ODBC connection strings.
Lists server databases, derives per-database connection strings, runs ad-hoc queries.
"""
import logging
import re
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError

from core.errors import DatabaseConnectionError, QueryExecutionError
from models.query import QueryResult

logger = logging.getLogger(__name__)

LIST_DATABASES_SQL = """
    SELECT name
    FROM sys.databases
    WHERE name NOT IN ('master', 'tempdb', 'model', 'msdb')
    ORDER BY name
"""

# key=value pairs; values may be wrapped in {} with }} as an escaped brace
_PAIR_RE = re.compile(r"\s*([^=;]+?)\s*=\s*(\{(?:[^}]|\}\})*\}|[^;]*)\s*(?:;|$)")


def parse_connection_string(connection_string: str) -> dict[str, str]:
    """Split an ODBC connection string into a {lowercased key: value} dict."""
    pairs: dict[str, str] = {}
    for m in _PAIR_RE.finditer(connection_string):
        key, value = m.group(1).strip().lower(), m.group(2).strip()
        if value.startswith("{") and value.endswith("}"):
            value = value[1:-1].replace("}}", "}")
        pairs[key] = value
    return pairs


def database_name_from_connection_string(connection_string: str) -> str:
    pairs = parse_connection_string(connection_string)
    return pairs.get("database") or pairs.get("initial catalog") or ""


def _quote_value(value: str) -> str:
    if any(ch in value for ch in ";{}=") or value != value.strip():
        return "{" + value.replace("}", "}}") + "}"
    return value


def with_database(base_connection_string: str, database: str) -> str:
    """Append a Database= key for `database` to the server-level connection string."""
    return f"{base_connection_string.rstrip().rstrip(';')};Database={_quote_value(database)};"


def build_sqlalchemy_url(connection_string: str) -> URL:
    return URL.create("mssql+pyodbc", query={"odbc_connect": connection_string})


def create_engine_from_connection_string(connection_string: str) -> Engine:
    """Build and test a SQLAlchemy engine from an ODBC connection string."""
    engine = create_engine(build_sqlalchemy_url(connection_string), pool_pre_ping=True)
    # Validate the connection immediately
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except (OperationalError, DBAPIError) as e:
        engine.dispose()
        raise DatabaseConnectionError(f"Could not connect to database: {e}") from e
    return engine


@contextmanager
def engine_scope(connection_string: str) -> Iterator[Engine]:
    """Yield a validated engine and dispose of it when the block exits."""
    engine = create_engine_from_connection_string(connection_string)
    try:
        yield engine
    finally:
        engine.dispose()


def list_databases(base_connection_string: str) -> list[str]:
    """Return the user databases on the server, system databases excluded, ordered by name."""
    with engine_scope(base_connection_string) as engine:
        try:
            with engine.connect() as conn:
                rows = conn.execute(text(LIST_DATABASES_SQL)).all()
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(f"Could not list databases: {e}") from e
    databases = [r[0] for r in rows]
    logger.info("Discovered %d databases", len(databases))
    return databases


def run_query(conn, sql: str) -> QueryResult:
    """Execute `sql` on an open connection and collect its rows."""
    # raw driver execution: colons inside literals must not become bind parameters
    result = conn.exec_driver_sql(sql)
    if not result.returns_rows:
        return QueryResult()
    columns = list(result.keys())
    rows = result.fetchall()
    return QueryResult(columns=columns, rows=[tuple(r) for r in rows])


def execute_query(connection_string: str, sql: str) -> QueryResult:
    """Run a generated query against the selected database and commit it."""
    try:
        with engine_scope(connection_string) as engine:
            with engine.begin() as conn:
                result = run_query(conn, sql)
    except DatabaseConnectionError as e:
        raise QueryExecutionError(str(e)) from e
    except SQLAlchemyError as e:
        raise QueryExecutionError(f"SQL error: {getattr(e, 'orig', None) or e}") from e
    logger.info("Query returned %d rows", result.row_count)
    return result
