from __future__ import annotations

from typing import Any

from sqlalchemy.engine import Connection, CursorResult, Engine
from sqlalchemy.sql.expression import Executable


class DbSession:
    """
    Transactional wrapper around a SQLAlchemy Engine connection.

    Use as:
        with DbSession(engine) as session:
            changed = session.execute(stmt)
            rows = session.fetch_all(select_stmt)

    The transaction commits on a clean exit and rolls back when the block raises.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._conn: Connection | None = None
        self._tx = None

    def __enter__(self) -> "DbSession":
        if self._conn is not None:
            raise RuntimeError("DbSession is already active; nested sessions are not allowed")
        self._conn = self.engine.connect()
        self._tx = self._conn.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._tx is not None:
                if exc_type:
                    self._tx.rollback()
                else:
                    self._tx.commit()
        finally:
            if self._conn is not None:
                self._conn.close()

            self._conn = None
            self._tx = None

        # propagate exceptions (if any)
        return False

    def _connection(self) -> Connection:
        if self._conn is None:
            raise RuntimeError("DbSession is not active; use within a context manager")
        return self._conn

    def _run(self, stmt: Executable) -> CursorResult:
        conn = self._connection()
        return conn.execute(stmt)

    def execute(self, stmt: Executable) -> int:
        """
        Execute a non-SELECT statement and return affected row count.
        """
        result = self._run(stmt)
        if result.rowcount is None or result.rowcount < 0:
            raise RuntimeError(
                "execute() did not receive a rowcount for statement. "
                "This may indicate a DDL statement or unsupported operation type."
            )
        return int(result.rowcount)

    def insert(self, stmt: Executable) -> Any:
        """
        Execute a Core INSERT and return the storage-assigned primary key.
        """
        result = self._run(stmt)
        pk = result.inserted_primary_key
        if pk is None or len(pk) == 0:
            return None
        return pk[0]

    def fetch_all(self, stmt: Executable) -> list[dict[str, Any]]:
        """
        Execute a SELECT expected to return multiple rows.
        """
        result = self._run(stmt)
        return [dict(row) for row in result.mappings()]
