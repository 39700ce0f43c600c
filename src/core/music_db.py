"""
Read-only access to the music SQLite database (Artist, Album, Track, Genre,
Customer, Invoice).
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, List, Union

from .errors import ToolExecutionError, ValidationDenied
from util.logging import logger

WRITE_KEYWORDS = ["drop", "delete", "insert", "update", "alter", "create"]

SCHEMA_DESCRIPTION = """Available tables:
- Artist (ArtistId, Name)
- Album (AlbumId, Title, ArtistId)
- Track (TrackId, Name, AlbumId, MediaTypeId, GenreId, Composer, Milliseconds, Bytes, UnitPrice)
- Genre (GenreId, Name)
- Customer (CustomerId, FirstName, LastName)
- Invoice (InvoiceId, CustomerId, Total)
Only SELECT queries are allowed."""


def check_read_only(statement: str):
    """Raise ValidationDenied unless the statement is a plain SELECT."""
    lowered = statement.lower().strip()
    for keyword in WRITE_KEYWORDS:
        if keyword in lowered:
            raise ValidationDenied("Only SELECT queries are allowed for safety", category="sql_write")

    if not lowered.startswith("select"):
        raise ValidationDenied("Only SELECT queries are allowed", category="sql_write")


class MusicDatabase:
    """Executes single SELECT statements against a read-only SQLite connection."""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path).resolve()

    @contextmanager
    def _connect(self) -> Generator[sqlite3.Connection, None, None]:
        if not self.db_path.exists():
            raise ToolExecutionError(f"Failed to connect to database: {self.db_path} does not exist")
        try:
            conn = sqlite3.connect(f"file:{self.db_path}?mode=ro", uri=True)
        except sqlite3.Error as e:
            raise ToolExecutionError(f"Failed to connect to database: {e}")
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def execute(self, statement: str) -> List[Dict[str, Any]]:
        """Run a read-only statement and return rows as dicts."""
        check_read_only(statement)

        with self._connect() as conn:
            try:
                rows = conn.execute(statement).fetchall()
            except sqlite3.Error as e:
                logger.log_sql_query(statement, status="failed")
                raise ToolExecutionError(f"Query execution failed: {e}")

        logger.log_sql_query(statement, len(rows))
        return [dict(row) for row in rows]

    def get_schema(self) -> List[Dict[str, Any]]:
        """Table names and CREATE statements."""
        return self.execute("SELECT name, sql FROM sqlite_master WHERE type='table' ORDER BY name")
