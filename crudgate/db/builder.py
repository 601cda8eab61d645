from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from sqlalchemy import Table, and_, delete, func, insert, literal_column, select, update
from sqlalchemy.sql.expression import ColumnElement, Executable

from ..config import DbConfig
from ..errors import ActionError
from .models import CrudAction, CrudOperation


@dataclass
class BuiltStatement:
    action: CrudAction
    statement: Executable


def _equality_filter(table: Table, fields: Mapping[str, Any]) -> ColumnElement[bool]:
    # Comparing against None renders as IS NULL.
    return and_(*(table.c[name] == value for name, value in fields.items()))


def build_insert(table: Table, fields: Mapping[str, Any]) -> Executable:
    if not fields:
        raise ActionError("No fields to insert")
    return insert(table).values(dict(fields))


def build_update(
    table: Table,
    fields: Mapping[str, Any],
    *,
    id_column: str,
    touch_column: str,
) -> Executable:
    """
    UPDATE one row by primary key.

    The touch column is always set to CURRENT_TIMESTAMP alongside the caller's
    fields. Zero affected rows is a valid outcome, not an error.
    """
    id_value = fields.get(id_column)
    # Falsy ids (null, 0, "") count as missing.
    if not id_value:
        raise ActionError(f"Missing '{id_column}' for update")

    values = {name: value for name, value in fields.items() if name != id_column}
    if not values:
        raise ActionError("No fields to update")
    values[touch_column] = func.current_timestamp()

    return update(table).where(table.c[id_column] == id_value).values(values)


def build_select(table: Table, fields: Mapping[str, Any]) -> Executable:
    # SELECT * keeps the row shape of the physical table.
    stmt = select(literal_column("*")).select_from(table)
    if fields:
        stmt = stmt.where(_equality_filter(table, fields))
    return stmt


def build_delete(table: Table, fields: Mapping[str, Any]) -> Executable:
    if not fields:
        raise ActionError("Need at least one condition to delete")
    return delete(table).where(_equality_filter(table, fields))


def build_statement(table: Table, op: CrudOperation, db_config: DbConfig) -> BuiltStatement:
    """
    Turn a validated operation into a parameterized statement.

    Every value is a bound parameter; names come from ``table`` only.

    Raises:
        ActionError: unknown action, or the action's preconditions are not met
    """
    action = CrudAction.parse(op.action)

    if action == CrudAction.CREATE:
        stmt = build_insert(table, op.fields)
    elif action == CrudAction.UPDATE:
        stmt = build_update(
            table,
            op.fields,
            id_column=db_config.id_column,
            touch_column=db_config.touch_column,
        )
    elif action == CrudAction.READ:
        stmt = build_select(table, op.fields)
    else:
        stmt = build_delete(table, op.fields)

    return BuiltStatement(action=action, statement=stmt)
