"""Pydantic schema for executed query results."""
from typing import Any
from pydantic import BaseModel, Field


class QueryResult(BaseModel):
    columns: list[str] = Field(default_factory=list)
    rows: list[tuple[Any, ...]] = Field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)
