"""
Thin driver adapter over ``sqlite3``.

Owns exactly one connection. Every failure is recorded in
``last_error_message`` and re-raised as a ``DBError`` so that the layers
above can decide whether to propagate or report.
"""
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator

from navi_generator.logger import get_logger

logger = get_logger(__name__)

# --- DATABASE ERRORS


class DBError(Exception):
    """Base exception for database operations."""


class DBConstraintError(DBError):
    """Raised when a database constraint is violated."""


class DBSchemaError(DBError):
    """Raised when a table selector or schema object is invalid."""


Params = tuple | dict | None


class SQLiteDriver:
    """Single-connection sqlite3 adapter with explicit transaction control."""

    def __init__(self, busy_timeout_s: float = 30.0) -> None:
        self._busy_timeout_s = busy_timeout_s
        self._conn: sqlite3.Connection | None = None
        self._in_transaction = False
        self._last_error = ""

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def last_error_message(self) -> str:
        """Text of the most recent driver failure ('' if none yet)."""
        return self._last_error

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    def open(self, db_path: Path | str) -> None:
        """Open the database file, creating parent directories as needed."""
        if self._conn is not None:
            return
        db_path = Path(db_path)
        try:
            if str(db_path) != ":memory:":
                db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(
                str(db_path),
                timeout=self._busy_timeout_s,
                isolation_level=None,
                check_same_thread=False,
            )
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            conn.execute(f"PRAGMA busy_timeout = {int(self._busy_timeout_s * 1000)}")
        except (sqlite3.Error, OSError) as e:
            self._last_error = str(e)
            raise DBError(f"Cannot open database {db_path}: {e}") from e
        self._conn = conn
        self._in_transaction = False
        logger.debug("Opened sqlite connection to %s", db_path)

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._conn is None:
            return
        if self._in_transaction:
            logger.warning("Closing connection with an open transaction; rolling back")
            try:
                self._conn.execute("ROLLBACK")
            except sqlite3.Error as e:
                self._last_error = str(e)
        self._conn.close()
        self._conn = None
        self._in_transaction = False

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._last_error = "database is not open"
            raise DBError("Database connection is not open")
        return self._conn

    def _execute(self, sql: str, params: Params = None) -> sqlite3.Cursor:
        conn = self._connection()
        try:
            return conn.execute(sql, params or ())
        except sqlite3.IntegrityError as e:
            self._last_error = str(e)
            raise DBConstraintError(str(e)) from e
        except (sqlite3.Error, OverflowError) as e:
            # OverflowError: integer parameter outside the signed 64-bit range
            self._last_error = str(e)
            raise DBError(str(e)) from e

    def execute_query(self, sql: str, params: Params = None) -> list[sqlite3.Row]:
        """Run a statement and return all result rows."""
        cursor = self._execute(sql, params)
        try:
            return cursor.fetchall()
        except sqlite3.Error as e:
            self._last_error = str(e)
            raise DBError(str(e)) from e

    def execute_non_query(self, sql: str, params: Params = None) -> int:
        """Run a statement and return the number of affected rows."""
        return self._execute(sql, params).rowcount

    def execute_many(self, sql: str, params_seq: Iterable[tuple]) -> int:
        """Run a statement once per parameter tuple."""
        conn = self._connection()
        try:
            return conn.executemany(sql, params_seq).rowcount
        except sqlite3.IntegrityError as e:
            self._last_error = str(e)
            raise DBConstraintError(str(e)) from e
        except (sqlite3.Error, OverflowError) as e:
            self._last_error = str(e)
            raise DBError(str(e)) from e

    def begin_transaction(self, immediate: bool = False) -> None:
        self._execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
        self._in_transaction = True

    def commit_transaction(self) -> None:
        try:
            self._execute("COMMIT")
        finally:
            self._in_transaction = self._conn is not None and self._conn.in_transaction

    def rollback_transaction(self) -> None:
        try:
            self._execute("ROLLBACK")
        finally:
            self._in_transaction = False

    @contextmanager
    def transaction(self, immediate: bool = False) -> Iterator[None]:
        """Commit on success, roll back on any exception and re-raise.

        An inner ``transaction()`` joins the outer one.
        """
        if self._in_transaction:
            yield
            return
        self.begin_transaction(immediate=immediate)
        try:
            yield
            self.commit_transaction()
        except Exception:
            if self._in_transaction:
                try:
                    self.rollback_transaction()
                except DBError as rollback_error:
                    logger.error("Rollback failed: %s", rollback_error)
            raise

    def scalar(self, sql: str, params: Params = None) -> Any:
        """First column of the first row, or None when there is no row."""
        rows = self.execute_query(sql, params)
        if not rows:
            return None
        return rows[0][0]
