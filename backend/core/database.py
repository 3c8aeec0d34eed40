"""
SQLite connection to the LMS datastore.

The search and progress services only ever read through this class.
"""
import re
import sqlite3
from pathlib import Path
from typing import Any, List, Optional, Sequence
from contextlib import contextmanager

from .config import DB_PATH, SCHEMA_FILE, TABLE_PREFIX

# Largest value SQLite can bind as INTEGER
MAX_ROW_ID = 2 ** 63 - 1


def parse_row_id(value: Any) -> Optional[int]:
    """
    Parse an ASCII-digit row id.

    Returns None for anything else, including ids too large to bind.
    """
    text = str(value).strip() if value is not None else ""
    if not re.fullmatch(r"[0-9]+", text):
        return None
    row_id = int(text)
    return row_id if row_id <= MAX_ROW_ID else None


class Database:
    """Query interface over the host's SQLite database."""

    def __init__(self, db_path: Path = DB_PATH):
        self.db_path = db_path

    @contextmanager
    def get_connection(self):
        """Context manager for database connections."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def ensure_tables(self, schema_file: Path = SCHEMA_FILE):
        """Create the LMS tables if they don't exist (local datastores only)."""
        if schema_file.exists():
            with open(schema_file, "r") as f:
                schema = f.read().replace("{prefix}", TABLE_PREFIX)

            with self.get_connection() as conn:
                conn.executescript(schema)

    def execute(self, query: str, params: Optional[Sequence[Any]] = None) -> List[sqlite3.Row]:
        """Execute a SELECT query and return results."""
        with self.get_connection() as conn:
            cursor = conn.execute(query, tuple(params or ()))
            return cursor.fetchall()

    def execute_one(self, query: str, params: Optional[Sequence[Any]] = None) -> Optional[sqlite3.Row]:
        """Execute a SELECT query and return first result."""
        results = self.execute(query, params)
        return results[0] if results else None

    def execute_scalar(self, query: str, params: Optional[Sequence[Any]] = None) -> Any:
        """Execute a SELECT query and return the first column of the first row."""
        row = self.execute_one(query, params)
        return row[0] if row is not None else None

    def execute_column(self, query: str, params: Optional[Sequence[Any]] = None) -> List[Any]:
        """Execute a SELECT query and return the first column of every row."""
        return [row[0] for row in self.execute(query, params)]

    def table_exists(self, table: str) -> bool:
        """Check whether a table is present in the datastore."""
        result = self.execute_one(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table,)
        )
        return result is not None


# Global database instance
db = Database()
