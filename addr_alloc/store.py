"""SQLite-backed transactional store for device -> address records.

Each namespace is a table keyed by device identifier holding a fixed
4-byte value. Records are insert-only: a key is written at most once.
"""

from __future__ import annotations

import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .errors import StorageError

_NAMESPACE_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class Transaction:
    """A single read or write transaction against one namespace."""

    def __init__(self, conn: sqlite3.Connection, namespace: str, writable: bool):
        self._conn = conn
        self._namespace = namespace
        self.writable = writable

    def get(self, key: str) -> bytes | None:
        try:
            row = self._conn.execute(
                f"SELECT address FROM {self._namespace} WHERE device = ?", (key,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError("read", str(e)) from e
        return None if row is None else bytes(row[0])

    def put(self, key: str, value: bytes) -> None:
        """Insert a new record. Existing keys are never overwritten."""
        if not self.writable:
            raise StorageError("write", "transaction is read-only")
        try:
            self._conn.execute(
                f"INSERT INTO {self._namespace} (device, address) VALUES (?, ?)",
                (key, sqlite3.Binary(value)),
            )
        except sqlite3.Error as e:
            raise StorageError("write", str(e)) from e

    def items(self) -> list[tuple[str, bytes]]:
        try:
            rows = self._conn.execute(
                f"SELECT device, address FROM {self._namespace}"
            ).fetchall()
        except sqlite3.Error as e:
            raise StorageError("read", str(e)) from e
        return [(device, bytes(address)) for device, address in rows]


class AddressStore:
    """Durable key-mapping store with one namespace of address records."""

    def __init__(self, db_path: str | Path, namespace: str = "addresses", timeout: float = 10.0):
        if not _NAMESPACE_RE.match(namespace):
            raise ValueError(f"Invalid namespace name: {namespace!r}")
        self.db_path = Path(db_path)
        self.namespace = namespace
        self.timeout = timeout
        self.migrate()

    def _connect(self) -> sqlite3.Connection:
        # Transactions are issued explicitly, never implicitly by the driver.
        return sqlite3.connect(str(self.db_path), timeout=self.timeout, isolation_level=None)

    def migrate(self) -> None:
        """Create the namespace if it does not exist yet."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = self._connect()
        except (OSError, sqlite3.Error) as e:
            raise StorageError("write", str(e)) from e
        try:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.namespace} (
                    device TEXT PRIMARY KEY,
                    address BLOB NOT NULL CHECK (length(address) = 4)
                )
                """
            )
        except sqlite3.Error as e:
            raise StorageError("write", str(e)) from e
        finally:
            conn.close()

    @contextmanager
    def transaction(self, write: bool = False) -> Iterator[Transaction]:
        """Open a transaction; commit on clean exit, roll back on any error.

        Write transactions take the database write lock up front, so the
        check and the insert made inside one are atomic.
        """
        operation = "write" if write else "read"
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise StorageError(operation, str(e)) from e
        try:
            conn.execute("BEGIN IMMEDIATE" if write else "BEGIN")
            yield Transaction(conn, self.namespace, write)
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            _rollback(conn)
            raise StorageError(operation, str(e)) from e
        except BaseException:
            _rollback(conn)
            raise
        finally:
            conn.close()


def _rollback(conn: sqlite3.Connection) -> None:
    if conn.in_transaction:
        try:
            conn.execute("ROLLBACK")
        except sqlite3.Error:
            # Connection is closed right after; SQLite discards the transaction.
            pass
