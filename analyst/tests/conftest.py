import os
import sys

# Add the parent directory (analyst) to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
import sqlite3
import tempfile
from collections import deque

from core.console import Key
from core.schema_extractor import COLUMNS_SQL, FOREIGN_KEYS_SQL, TABLES_SQL
from models.schema import ColumnSchema, DatabaseSchema, TableSchema


class FakeTerminal:
    """Scripted Terminal: feeds queued lines/keys and records every frame written."""

    def __init__(self, lines=(), keys=()):
        self.lines = deque(lines)
        self.keys = deque(keys)
        self.frames = []
        self.erased = 0
        self.cursor_visible = True

    def write(self, frame):
        self.frames.append(list(frame))

    def erase(self, frame):
        self.erased += 1

    def read_line(self):
        return self.lines.popleft() if self.lines else ""

    def read_key(self):
        return self.keys.popleft() if self.keys else Key.ENTER

    def set_cursor_visible(self, visible):
        self.cursor_visible = visible

    @property
    def output(self) -> str:
        return "\n".join(line.text for frame in self.frames for line in frame)


class FakeLLM:
    """Returns queued replies (or raises queued exceptions) and records each request."""

    def __init__(self, *replies):
        self.replies = deque(replies)
        self.requests = []

    def chat(self, messages):
        self.requests.append([dict(m) for m in messages])
        reply = self.replies.popleft()
        if isinstance(reply, Exception):
            raise reply
        return reply


class _Rows:
    def __init__(self, rows):
        self._rows = rows

    def all(self):
        return list(self._rows)


class FakeCatalogConnection:
    """Answers the extractor's three catalog queries from in-memory rows."""

    def __init__(self, tables, columns, foreign_keys=None):
        self.tables = tables                      # [(schema, name)]
        self.columns = columns                    # {(schema, name): [ColumnRow tuples]}
        self.foreign_keys = foreign_keys or {}    # {(schema, name): [ForeignKeyRow tuples]}
        self.executed = []

    def execute(self, stmt, params=None):
        sql = stmt.text
        self.executed.append((sql, params))
        if sql == TABLES_SQL:
            return _Rows(self.tables)
        key = (params["table_schema"], params["table_name"])
        if sql == COLUMNS_SQL:
            return _Rows(self.columns.get(key, []))
        if sql == FOREIGN_KEYS_SQL:
            return _Rows(self.foreign_keys.get(key, []))
        raise AssertionError(f"unexpected query: {sql[:60]}")


@pytest.fixture
def terminal():
    return FakeTerminal()


@pytest.fixture
def orders_schema():
    customers = TableSchema(
        name="Customers",
        schema_name="dbo",
        columns=[
            ColumnSchema(name="Id", data_type="int", precision=10, scale=0, is_nullable=False, is_primary_key=True),
            ColumnSchema(name="Name", data_type="nvarchar", size=100, description="Customer display name"),
        ],
    )
    orders = TableSchema(
        name="Orders",
        schema_name="dbo",
        columns=[
            ColumnSchema(name="Id", data_type="int", precision=10, scale=0, is_nullable=False, is_primary_key=True),
            ColumnSchema(
                name="CustomerId", data_type="int", precision=10, scale=0, is_nullable=False,
                is_foreign_key=True, foreign_key_table="dbo.Customers", foreign_key_column="Id",
            ),
            ColumnSchema(name="Total", data_type="decimal", precision=18, scale=2),
            ColumnSchema(name="Notes", data_type="nvarchar", size=-1),
        ],
    )
    return DatabaseSchema(database_name="Shop", tables=[orders, customers])


@pytest.fixture
def temp_sqlite_db():
    fd, path = tempfile.mkstemp(suffix=".db")
    try:
        conn = sqlite3.connect(path)
        cur = conn.cursor()
        cur.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, email TEXT UNIQUE);")
        cur.execute("INSERT INTO users (name, email) VALUES ('Test User', 'test@example.com');")
        cur.execute("INSERT INTO users (name, email) VALUES ('No Mail', NULL);")
        conn.commit()
        conn.close()
        yield path
    finally:
        os.close(fd)
        os.remove(path)
