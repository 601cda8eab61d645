from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url

from .config import GatewayConfig
from .db.executor import CrudExecutor
from .gateway.dispatcher import Dispatcher
from .logship.forwarder import LogForwarder

logger = logging.getLogger(__name__)

# Starlette routes default to GET only; the dispatcher answers 405 itself.
ROUTED_METHODS = ["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]


def make_engine(database_url: str) -> Engine:
    connect_args = {}
    if make_url(database_url).get_backend_name() == "sqlite":
        # Statements run on worker threads; pooled connections move between them.
        connect_args["check_same_thread"] = False
    return create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)


def create_app(
    config: GatewayConfig,
    *,
    engine: Engine | None = None,
    log_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """
    Build the gateway application.

    Every method on every path reaches the dispatcher, which owns the 405/404
    answers. The log forwarder runs for the lifetime of the app.
    """
    owns_engine = engine is None
    engine = engine or make_engine(config.database_url)
    forwarder = LogForwarder(config.log, transport=log_transport)
    dispatcher = Dispatcher(config, CrudExecutor(engine, config.db), forwarder)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "crudgate starting: default table %s, %d allowed columns, log collector %s",
            config.db.default_table,
            len(config.db.allowed_columns),
            config.log.url or "disabled",
        )
        await forwarder.start()
        try:
            yield
        finally:
            await forwarder.stop()
            if owns_engine:
                engine.dispose()
            logger.info("crudgate stopped")

    app = FastAPI(
        title="crudgate",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.dispatcher = dispatcher
    app.add_route(
        "/{path:path}",
        dispatcher.handle,
        methods=ROUTED_METHODS,
        include_in_schema=False,
    )
    return app
