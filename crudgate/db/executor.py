from __future__ import annotations

import logging
import time
from typing import Any

from anyio import to_thread
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..config import DbConfig
from ..errors import DbExecuteError
from .builder import BuiltStatement, build_statement
from .metrics import OTHER_TABLE_LABEL, observe_db_op
from .models import CrudAction, CrudOperation
from .schema import SchemaRegistry
from .session import DbSession

logger = logging.getLogger(__name__)


def _error_message(exc: SQLAlchemyError) -> str:
    # The DBAPI error carries the driver's message without the SQL echo.
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


class CrudExecutor:
    """
    Runs one CRUD operation as a single statement in its own transaction.

    Building happens before a connection is taken, so an operation rejected by
    the builder (``ActionError``) never touches storage.
    """

    def __init__(
        self,
        engine: Engine,
        db_config: DbConfig,
        schema: SchemaRegistry | None = None,
    ) -> None:
        self.engine = engine
        self.db_config = db_config
        self.schema = schema or SchemaRegistry(db_config)

    def build(self, op: CrudOperation) -> BuiltStatement:
        return build_statement(self.schema.table(op.table), op, self.db_config)

    def execute(self, op: CrudOperation) -> dict[str, Any]:
        """
        Perform the operation and return its result payload.

        Raises ActionError when the operation cannot be built and
        DbExecuteError when storage rejects the statement.
        """
        built = self.build(op)
        logger.debug(
            "Executing %s on %s (table version %s) for request %s with fields %s",
            built.action.value,
            op.table,
            op.metadata.get("table_version"),
            op.metadata.get("request_id"),
            list(op.fields),
        )
        start_time = time.monotonic()
        status = "success"

        try:
            with DbSession(self.engine) as session:
                return self._run(session, built)
        except SQLAlchemyError as exc:
            status = "error"
            raise DbExecuteError(_error_message(exc)) from exc
        except Exception:
            status = "error"
            raise
        finally:
            latency = time.monotonic() - start_time
            table_label = op.table if self.schema.is_known(op.table) else OTHER_TABLE_LABEL
            observe_db_op(table_label, built.action.value, status, latency)

    async def execute_async(self, op: CrudOperation) -> dict[str, Any]:
        """Run ``execute`` in a worker thread so the event loop keeps serving."""
        return await to_thread.run_sync(self.execute, op)

    def _run(self, session: DbSession, built: BuiltStatement) -> dict[str, Any]:
        if built.action == CrudAction.CREATE:
            return {"insertedId": session.insert(built.statement)}
        if built.action == CrudAction.UPDATE:
            return {"changes": session.execute(built.statement)}
        if built.action == CrudAction.READ:
            return {"data": session.fetch_all(built.statement)}
        if built.action == CrudAction.DELETE:
            return {"deleted": session.execute(built.statement)}
        raise DbExecuteError(f"Unsupported action: {built.action}")
