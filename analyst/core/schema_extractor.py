"""
Schema extractor — reads SQL Server metadata catalogs into a DatabaseSchema.
Tables and columns come from INFORMATION_SCHEMA, column descriptions from the
MS_Description extended property, foreign keys from sys.foreign_keys.
"""
import logging
from typing import Any, NamedTuple, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from core.db_connector import database_name_from_connection_string, engine_scope
from core.errors import DatabaseConnectionError, SchemaExtractionError
from models.schema import ColumnSchema, DatabaseSchema, ExtractionWarning, TableSchema

logger = logging.getLogger(__name__)


TABLES_SQL = """
    SELECT TABLE_SCHEMA, TABLE_NAME
    FROM INFORMATION_SCHEMA.TABLES
    WHERE TABLE_TYPE = 'BASE TABLE'
    ORDER BY TABLE_SCHEMA, TABLE_NAME
"""

COLUMNS_SQL = """
    SELECT
        c.COLUMN_NAME,
        c.DATA_TYPE,
        c.CHARACTER_MAXIMUM_LENGTH,
        c.NUMERIC_PRECISION,
        c.NUMERIC_SCALE,
        c.IS_NULLABLE,
        CASE WHEN pk.COLUMN_NAME IS NOT NULL THEN 'YES' ELSE 'NO' END AS IS_PRIMARY_KEY,
        c.COLUMN_DEFAULT,
        ep.value AS DESCRIPTION
    FROM INFORMATION_SCHEMA.COLUMNS c
    LEFT JOIN (
        SELECT ku.TABLE_CATALOG, ku.TABLE_SCHEMA, ku.TABLE_NAME, ku.COLUMN_NAME
        FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS AS tc
        JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE AS ku
            ON tc.CONSTRAINT_TYPE = 'PRIMARY KEY'
            AND tc.CONSTRAINT_NAME = ku.CONSTRAINT_NAME
            AND tc.TABLE_SCHEMA = ku.TABLE_SCHEMA
            AND tc.TABLE_NAME = ku.TABLE_NAME
    ) pk
        ON c.TABLE_CATALOG = pk.TABLE_CATALOG
        AND c.TABLE_SCHEMA = pk.TABLE_SCHEMA
        AND c.TABLE_NAME = pk.TABLE_NAME
        AND c.COLUMN_NAME = pk.COLUMN_NAME
    LEFT JOIN sys.tables t
        ON t.name = c.TABLE_NAME
        AND SCHEMA_NAME(t.schema_id) = c.TABLE_SCHEMA
    LEFT JOIN sys.columns sc
        ON sc.object_id = t.object_id
        AND sc.name = c.COLUMN_NAME
    LEFT JOIN sys.extended_properties ep
        ON ep.major_id = t.object_id
        AND ep.minor_id = sc.column_id
        AND ep.name = 'MS_Description'
    WHERE c.TABLE_NAME = :table_name AND c.TABLE_SCHEMA = :table_schema
    ORDER BY c.ORDINAL_POSITION
"""

FOREIGN_KEYS_SQL = """
    SELECT
        fk.name AS FK_NAME,
        COL_NAME(fkc.parent_object_id, fkc.parent_column_id) AS COLUMN_NAME,
        OBJECT_SCHEMA_NAME(fk.referenced_object_id) AS REFERENCED_SCHEMA_NAME,
        OBJECT_NAME(fk.referenced_object_id) AS REFERENCED_TABLE_NAME,
        COL_NAME(fkc.referenced_object_id, fkc.referenced_column_id) AS REFERENCED_COLUMN_NAME
    FROM sys.foreign_keys fk
    INNER JOIN sys.foreign_key_columns fkc ON fk.object_id = fkc.constraint_object_id
    INNER JOIN sys.tables t ON t.object_id = fk.parent_object_id
    WHERE SCHEMA_NAME(t.schema_id) = :table_schema AND t.name = :table_name
"""


# ── Typed catalog rows (positional, in SELECT order) ─────────────────────────

class TableRow(NamedTuple):
    table_schema: str
    table_name: str


class ColumnRow(NamedTuple):
    column_name: str
    data_type: str
    character_maximum_length: Any
    numeric_precision: Any
    numeric_scale: Any
    is_nullable: str
    is_primary_key: str
    column_default: Optional[str]
    description: Any


class ForeignKeyRow(NamedTuple):
    fk_name: str
    column_name: Optional[str]
    referenced_schema_name: Optional[str]
    referenced_table_name: Optional[str]
    referenced_column_name: Optional[str]


def parse_optional_int(value: Any) -> Optional[int]:
    """None for an absent (NULL) field; ValueError when present but not an integer."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"not an integer: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"not an integer: {value!r}")
        return int(value)
    return int(str(value).strip())


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


class SchemaExtractor:
    """Extracts a DatabaseSchema from the database named in `connection_string`."""

    def __init__(self, connection_string: str):
        self.connection_string = connection_string
        self.database_name = database_name_from_connection_string(connection_string)
        self.warnings: list[ExtractionWarning] = []

    def extract(self) -> DatabaseSchema:
        try:
            with engine_scope(self.connection_string) as engine:
                with engine.connect() as conn:
                    return self.extract_from_connection(conn)
        except (DatabaseConnectionError, SQLAlchemyError) as e:
            raise SchemaExtractionError(f"Error extracting schema: {e}") from e

    def extract_from_connection(self, conn) -> DatabaseSchema:
        """Run both catalog passes on an open connection. All-or-nothing."""
        self.warnings = []
        try:
            tables = [self._read_table(conn, row) for row in self._fetch_tables(conn)]
            for table in tables:
                self._apply_foreign_keys(conn, table)
            schema = DatabaseSchema(database_name=self.database_name, tables=tables)
        except (SQLAlchemyError, ValueError) as e:
            raise SchemaExtractionError(f"Error extracting schema: {e}") from e

        logger.info("Extracted %d tables from %s", len(schema.tables), self.database_name)
        return schema

    # ── Pass 1: tables and columns ───────────────────────────────────────────

    def _fetch_tables(self, conn) -> list[TableRow]:
        return [TableRow._make(r) for r in conn.execute(text(TABLES_SQL)).all()]

    def _read_table(self, conn, row: TableRow) -> TableSchema:
        params = {"table_name": row.table_name, "table_schema": row.table_schema}
        col_rows = [ColumnRow._make(r) for r in conn.execute(text(COLUMNS_SQL), params).all()]
        table = TableSchema(name=row.table_name, schema_name=row.table_schema or "dbo")
        table.columns = [self._build_column(table, r) for r in col_rows]
        return table

    def _build_column(self, table: TableSchema, row: ColumnRow) -> ColumnSchema:
        column = ColumnSchema(
            name=row.column_name,
            data_type=row.data_type,
            is_nullable=str(row.is_nullable).upper() == "YES",
            is_primary_key=str(row.is_primary_key).upper() == "YES",
            default_value=_optional_str(row.column_default),
            description=_optional_str(row.description),
        )

        size = self._parse_field(table, row, "CHARACTER_MAXIMUM_LENGTH", row.character_maximum_length)
        if size is not None:
            column.size = size
        else:
            column.precision = self._parse_field(table, row, "NUMERIC_PRECISION", row.numeric_precision)
            if column.precision is not None:
                column.scale = self._parse_field(table, row, "NUMERIC_SCALE", row.numeric_scale)
        return column

    def _parse_field(self, table: TableSchema, row: ColumnRow, field: str, value: Any) -> Optional[int]:
        try:
            return parse_optional_int(value)
        except ValueError:
            warning = ExtractionWarning(
                table=table.full_name, column=row.column_name, field=field, raw_value=str(value)
            )
            self.warnings.append(warning)
            logger.warning("Schema extraction: %s", warning)
            return None

    # ── Pass 2: foreign keys ─────────────────────────────────────────────────

    def _apply_foreign_keys(self, conn, table: TableSchema) -> None:
        params = {"table_name": table.name, "table_schema": table.schema_name}
        for r in conn.execute(text(FOREIGN_KEYS_SQL), params).all():
            fk = ForeignKeyRow._make(r)
            column = table.column(fk.column_name or "")
            if column is None or not fk.referenced_table_name or not fk.referenced_column_name:
                logger.debug("Skipping foreign key %s on %s: column %r not found",
                             fk.fk_name, table.full_name, fk.column_name)
                continue
            ref_table = (
                f"{fk.referenced_schema_name}.{fk.referenced_table_name}"
                if fk.referenced_schema_name else fk.referenced_table_name
            )
            column.mark_foreign_key(ref_table, fk.referenced_column_name)
