"""Schema describer — renders a DatabaseSchema as the text block embedded in the system prompt."""
from itertools import groupby

from models.schema import ColumnSchema, DatabaseSchema


def describe_column(column: ColumnSchema) -> str:
    constraints = []
    if column.is_primary_key:
        constraints.append("PRIMARY KEY")
    if not column.is_nullable:
        constraints.append("NOT NULL")
    if column.is_foreign_key:
        constraints.append(f"FOREIGN KEY references {column.foreign_key_ref}")

    constraint_str = f" ({', '.join(constraints)})" if constraints else ""
    description = f" - {column.description}" if column.description is not None else ""
    return f"  - {column.name}: {column.display_type}{constraint_str}{description}"


def describe_schema(schema: DatabaseSchema) -> str:
    """
    Tables grouped by namespace (ascending), then by name (ascending), columns in
    ordinal order, followed by a foreign-key relationships section.
    """
    lines = [f"Database: {schema.database_name}", ""]

    ordered = sorted(schema.tables, key=lambda t: (t.schema_name, t.name))
    for schema_name, tables in groupby(ordered, key=lambda t: t.schema_name):
        lines.append(f"Schema: {schema_name}")
        for table in tables:
            lines.append(f"Table: {table.full_name}")
            lines.append("Columns:")
            lines.extend(describe_column(c) for c in table.columns)
            lines.append("")

    lines.append("## Foreign Key Relationships")
    for table in sorted(schema.tables, key=lambda t: t.full_name):
        fks = table.foreign_keys
        if not fks:
            continue
        lines.append(f"{table.full_name} relationships:")
        lines.extend(f"  - {c.name} -> {c.foreign_key_ref}" for c in fks)
        lines.append("")

    return "\n".join(lines) + "\n"
