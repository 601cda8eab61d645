from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from crudgate.app import create_app, make_engine
from crudgate.config import DbConfig, GatewayConfig, LogConfig

WRITE_TOKEN = "test-write-token"
LOG_URL = "https://collector.test/api"

# Physical shape of a gateway table: integer key plus the default allowed columns.
GATEWAY_SCHEMA_SQL = """
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    c1 TEXT, c2 TEXT, c3 TEXT,
    i1 INTEGER, i2 INTEGER, i3 INTEGER,
    d1 REAL, d2 REAL, d3 REAL,
    t1 TEXT, t2 TEXT, t3 TEXT,
    v1 TEXT, v2 TEXT, v3 TEXT
"""


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """A throwaway SQLite file per test; worker threads share it through the pool."""
    return f"sqlite:///{tmp_path / 'gateway.db'}"


@pytest.fixture
def engine(database_url: str) -> Iterator[Engine]:
    eng = make_engine(database_url)
    yield eng
    eng.dispose()


@pytest.fixture
def table_factory(engine: Engine) -> Iterator[Callable[..., str]]:
    """
    Factory fixture creating gateway tables.

    Usage:
        table = table_factory("test2")
    """
    created: list[str] = []

    def _create(name: str, schema_sql: str = GATEWAY_SCHEMA_SQL) -> str:
        with engine.begin() as conn:
            conn.exec_driver_sql(f'DROP TABLE IF EXISTS "{name}"')
            conn.exec_driver_sql(f'CREATE TABLE "{name}" ({schema_sql})')
        created.append(name)
        return name

    yield _create

    with engine.begin() as conn:
        for name in created:
            conn.exec_driver_sql(f'DROP TABLE IF EXISTS "{name}"')


@pytest.fixture
def fresh_table(table_factory: Callable[..., str]) -> str:
    """The default table (``test1``), empty."""
    return table_factory("test1")


@pytest.fixture
def db_config() -> DbConfig:
    return DbConfig()


class Collector:
    """In-memory stand-in for the remote log collector."""

    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"type": "ack"})

    @property
    def entries(self) -> list[dict]:
        return [json.loads(request.content) for request in self.requests]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def collector() -> Collector:
    return Collector()


@pytest.fixture
def gateway_config(database_url: str) -> GatewayConfig:
    return GatewayConfig(
        write_token=WRITE_TOKEN,
        database_url=database_url,
        log=LogConfig(url=LOG_URL, token="log-token", backoff_s=0.0),
    )


@pytest.fixture
def client(
    gateway_config: GatewayConfig,
    engine: Engine,
    fresh_table: str,
    collector: Collector,
) -> Iterator[TestClient]:
    app = create_app(gateway_config, engine=engine, log_transport=collector.transport)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {WRITE_TOKEN}"}


@pytest.fixture
def call_api(client: TestClient, auth_headers: dict[str, str]) -> Callable[..., httpx.Response]:
    """POST an envelope to /api with the write token."""

    def _call(action: str, payload: dict, request_id: str | None = "req-1", token: str = WRITE_TOKEN):
        body: dict = {"action": action, "payload": payload}
        if request_id is not None:
            body["request_id"] = request_id
        headers = auth_headers if token == WRITE_TOKEN else {"Authorization": f"Bearer {token}"}
        return client.post("/api", json=body, headers=headers)

    return _call
