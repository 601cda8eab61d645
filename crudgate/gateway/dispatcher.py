from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import PlainTextResponse, Response

from ..config import GatewayConfig
from ..db.executor import CrudExecutor
from ..db.models import CrudOperation
from ..errors import GatewayError
from ..logship.forwarder import LogForwarder
from ..metrics.registry import REQUESTS_TOTAL
from .auth import authorize
from .envelope import DB_ERROR, UNKNOWN_REQUEST_ID, ack, check_scalar_fields, decode_request, nack
from .guard import guard_columns
from .tables import TableSelector, split_payload

logger = logging.getLogger(__name__)

API_PATH = "/api"


class Dispatcher:
    """
    The single request handler behind the gateway.

    Order of checks:
    1) method (405) and path (404), before anything is read
    2) bearer token
    3) envelope decode
    4) table selection, column guard, then value types
    5) build + execute

    Steps 2-4 answer with their own nack code. Anything raised by step 5 is a
    ``DB_ERROR`` and is mirrored to the log collector without waiting on it.
    """

    def __init__(
        self,
        config: GatewayConfig,
        executor: CrudExecutor,
        forwarder: LogForwarder,
        selector: TableSelector | None = None,
    ) -> None:
        self.config = config
        self.executor = executor
        self.forwarder = forwarder
        self.selector = selector or TableSelector(config.db)

    async def handle(self, request: Request) -> Response:
        if request.method != "POST":
            return PlainTextResponse("Method Not Allowed", status_code=405)
        if request.url.path != API_PATH:
            return PlainTextResponse("Not Found", status_code=404)

        try:
            authorize(request.headers, self.config.write_token)
            envelope = decode_request(await request.body())
            override, fields = split_payload(envelope.payload)
            selection = self.selector.resolve(override, envelope.request_id)
            guard_columns(fields, self.config.db.permitted_keys, envelope.request_id)
            check_scalar_fields(fields, envelope.request_id)
        except GatewayError as exc:
            return self._reject(exc)

        op = CrudOperation(
            table=selection.name,
            action=envelope.action,
            fields=fields,
            metadata={"request_id": envelope.request_id, "table_version": selection.version},
        )
        try:
            result = await self.executor.execute_async(op)
        except Exception as exc:
            return self._fail(envelope.request_id, op, exc)

        REQUESTS_TOTAL.labels(code="ACK").inc()
        return ack(envelope.request_id, result)

    def _reject(self, exc: GatewayError) -> Response:
        request_id = exc.request_id or UNKNOWN_REQUEST_ID
        logger.warning("Rejected request %s: %s %s", request_id, exc.code, exc.message)
        REQUESTS_TOTAL.labels(code=exc.code).inc()
        return nack(request_id, exc.code, exc.message, status=exc.status)

    def _fail(self, request_id: str, op: CrudOperation, exc: Exception) -> Response:
        message = str(exc) or type(exc).__name__
        logger.error(
            "%s failed on table %s for request %s: %s",
            op.action or "<no action>",
            op.table,
            request_id,
            message,
        )
        self.forwarder.report_error(request_id, message)
        REQUESTS_TOTAL.labels(code=DB_ERROR).inc()
        return nack(request_id, DB_ERROR, message)
