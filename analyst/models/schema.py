"""Pydantic schemas for extracted database structure."""
from typing import Optional
from pydantic import BaseModel, Field, model_validator

# SQL Server reports (n)varchar(max) / varbinary(max) lengths as -1
UNBOUNDED_SIZE = -1


def format_type_detail(size: Optional[int], precision: Optional[int], scale: Optional[int]) -> str:
    """Render the "(n)" / "(p,s)" suffix for a column type, or "" when none applies."""
    if size is not None and size != UNBOUNDED_SIZE:
        return f"({size})"
    if precision is not None:
        if scale is not None and scale > 0:
            return f"({precision},{scale})"
        return f"({precision})"
    return ""


class ColumnSchema(BaseModel):
    name: str
    data_type: str
    size: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    is_nullable: bool = True
    is_primary_key: bool = False
    is_foreign_key: bool = False
    foreign_key_table: Optional[str] = None    # "dbo.Customers"
    foreign_key_column: Optional[str] = None
    default_value: Optional[str] = None
    description: Optional[str] = None

    @model_validator(mode="after")
    def check_foreign_key(self) -> "ColumnSchema":
        if self.is_foreign_key and not (self.foreign_key_table and self.foreign_key_column):
            raise ValueError(
                f"Column '{self.name}' is marked as a foreign key but has no referenced table/column"
            )
        return self

    @property
    def type_detail(self) -> str:
        return format_type_detail(self.size, self.precision, self.scale)

    @property
    def display_type(self) -> str:
        return f"{self.data_type}{self.type_detail}"

    @property
    def foreign_key_ref(self) -> Optional[str]:
        if not self.is_foreign_key:
            return None
        return f"{self.foreign_key_table}.{self.foreign_key_column}"

    def mark_foreign_key(self, table: str, column: str) -> None:
        if not table or not column:
            raise ValueError(f"Foreign key on '{self.name}' needs a referenced table and column")
        self.is_foreign_key = True
        self.foreign_key_table = table
        self.foreign_key_column = column


class TableSchema(BaseModel):
    name: str
    schema_name: str = "dbo"
    columns: list[ColumnSchema] = Field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.schema_name}.{self.name}"

    @property
    def foreign_keys(self) -> list[ColumnSchema]:
        return [c for c in self.columns if c.is_foreign_key]

    def column(self, name: str) -> Optional[ColumnSchema]:
        return next((c for c in self.columns if c.name == name), None)


class DatabaseSchema(BaseModel):
    database_name: str
    tables: list[TableSchema] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_tables(self) -> "DatabaseSchema":
        seen: set[str] = set()
        for t in self.tables:
            if t.full_name in seen:
                raise ValueError(f"Duplicate table '{t.full_name}' in database '{self.database_name}'")
            seen.add(t.full_name)
        return self

    def table(self, full_name: str) -> Optional[TableSchema]:
        return next((t for t in self.tables if t.full_name == full_name), None)


class ExtractionWarning(BaseModel):
    """A catalog field that was present but could not be parsed."""
    table: str
    column: str
    field: str
    raw_value: str

    def __str__(self) -> str:
        return f"{self.table}.{self.column}: could not parse {self.field}={self.raw_value!r}"
