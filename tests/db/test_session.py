from __future__ import annotations

import pytest
from sqlalchemy import insert, select, text

from crudgate.db.schema import SchemaRegistry
from crudgate.db.session import DbSession


def _insert_two_rows(session: DbSession, table: str) -> None:
    stmt = text(f'INSERT INTO "{table}" (id, c1, i1) VALUES (:id, :c1, :i1)')
    session.execute(stmt.bindparams(id=1, c1="a", i1=10))
    session.execute(stmt.bindparams(id=2, c1="b", i1=20))


def test_transaction_commits_on_success(engine, fresh_table: str) -> None:
    table = fresh_table

    with DbSession(engine) as session:
        rc = session.execute(
            text(f'INSERT INTO "{table}" (id, c1) VALUES (:id, :c1)').bindparams(id=1, c1="x")
        )
        assert rc == 1

    with DbSession(engine) as session2:
        rows = session2.fetch_all(
            text(f'SELECT id, c1 FROM "{table}" WHERE id = :id').bindparams(id=1)
        )
        assert rows == [{"id": 1, "c1": "x"}]


def test_transaction_rolls_back_on_exception(engine, fresh_table: str) -> None:
    table = fresh_table

    with pytest.raises(RuntimeError):
        with DbSession(engine) as session:
            session.execute(text(f'INSERT INTO "{table}" (id, c1) VALUES (1, :c1)').bindparams(c1="x"))
            raise RuntimeError("boom")

    with DbSession(engine) as session2:
        assert session2.fetch_all(text(f'SELECT id FROM "{table}"')) == []


def test_connection_is_closed_after_exit(engine, fresh_table: str) -> None:
    table = fresh_table

    conn = None
    with DbSession(engine) as session:
        conn = session._conn  # behavior we care about: connection closes after exit
        assert conn is not None
        session.execute(text(f'INSERT INTO "{table}" (c1) VALUES (\'x\')'))

    assert conn is not None
    assert conn.closed is True


def test_nested_usage_raises_runtime_error(engine, fresh_table: str) -> None:
    with DbSession(engine) as session:
        with pytest.raises(RuntimeError):
            with session:
                pass


def test_use_outside_context_manager_raises(engine) -> None:
    session = DbSession(engine)
    with pytest.raises(RuntimeError):
        session.fetch_all(text("SELECT 1"))


def test_insert_returns_generated_primary_key(engine, fresh_table: str, db_config) -> None:
    table = SchemaRegistry(db_config).table(fresh_table)

    with DbSession(engine) as session:
        first = session.insert(insert(table).values(c1="a"))
        second = session.insert(insert(table).values(c1="b"))

    assert first is not None
    assert second == first + 1


def test_fetch_all_returns_dict_rows(engine, fresh_table: str, db_config) -> None:
    table = SchemaRegistry(db_config).table(fresh_table)

    with DbSession(engine) as session:
        _insert_two_rows(session, fresh_table)

    with DbSession(engine) as session:
        rows = session.fetch_all(select(table.c.id, table.c.c1).order_by(table.c.id))

    assert rows == [{"id": 1, "c1": "a"}, {"id": 2, "c1": "b"}]
