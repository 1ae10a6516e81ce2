# FirePass - SQLite Connection Helper
#
# All FirePass SQLite access goes through `open_db()` so every
# connection gets the same PRAGMAs:
#
#   - WAL journal mode (readers never block the single writer)
#   - busy_timeout so a second process waits instead of failing
#
# Connections are short-lived: one per store call, closed on exit.

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

BUSY_TIMEOUT_MS = 5000


def connect(db_path: Union[str, Path], *, row_factory: bool = False) -> sqlite3.Connection:
    """Open a SQLite connection with WAL mode and a busy timeout.

    Args:
        db_path: Path to the database file.
        row_factory: If True, rows are returned as sqlite3.Row.
    """
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def open_db(db_path: Union[str, Path], *, row_factory: bool = False) -> Iterator[sqlite3.Connection]:
    """Yield a connection inside a transaction; commit on success, always close.

    ``with sqlite3.connect(...)`` only scopes the transaction and leaves the
    handle open, which keeps the file locked on Windows.
    """
    conn = connect(db_path, row_factory=row_factory)
    try:
        with conn:
            yield conn
    finally:
        conn.close()
