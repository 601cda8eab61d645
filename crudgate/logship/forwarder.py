from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from ..config import LogConfig
from ..errors import LogForwardError
from ..metrics.registry import LOG_FORWARD_TOTAL

logger = logging.getLogger(__name__)

ERROR_PREFIX = "❌ *Error*\n"


class LogForwarder:
    """
    Best-effort shipping of diagnostics to the remote log collector.

    ``report()`` only enqueues and never waits on the network. A background
    worker, started with ``start()``, drains the queue and posts each entry.

    Delivery policy:
    - A full queue drops the new entry
    - Each entry is tried at most ``max_attempts`` times, then dropped
    - Failures are logged locally and never raised to the reporter

    Usage:
        forwarder = LogForwarder(config.log)
        await forwarder.start()
        forwarder.report_error(request_id, "boom")
        ...
        await forwarder.stop()
    """

    def __init__(
        self,
        config: LogConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._transport = transport
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=config.queue_size)
        self._client: httpx.AsyncClient | None = None
        self._worker: asyncio.Task | None = None

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def build_entry(self, request_id: str, level: int, message: str) -> dict[str, Any]:
        return {
            "version": "v1",
            "request_id": request_id,
            "service": "log",
            "action": "append",
            "payload": {
                "service": self.config.service_id,
                "instance": self.config.instance_id,
                "level": level,
                "message": message,
            },
        }

    def report(self, request_id: str, level: int, message: str) -> bool:
        """
        Queue one entry for delivery. Returns False when the entry was dropped.
        """
        if not self.config.enabled:
            LOG_FORWARD_TOTAL.labels(outcome="disabled").inc()
            return False

        entry = self.build_entry(request_id, level, message)
        try:
            self._queue.put_nowait(entry)
        except asyncio.QueueFull:
            LOG_FORWARD_TOTAL.labels(outcome="overflow").inc()
            logger.warning(
                "Log queue full (%d entries); dropping entry for request %s",
                self.config.queue_size,
                request_id,
            )
            return False
        return True

    def report_error(self, request_id: str, message: str) -> bool:
        return self.report(request_id, self.config.error_level, f"{ERROR_PREFIX}{message}")

    async def deliver(self, entry: dict[str, Any]) -> None:
        """
        POST a single entry to the collector.

        Raises:
            LogForwardError: transport failure or a non-2xx answer
        """
        client = self._ensure_client()
        try:
            response = await client.post(
                self.config.url,
                json=entry,
                headers={"Authorization": f"Bearer {self.config.token}"},
            )
        except httpx.HTTPError as exc:
            raise LogForwardError(f"Log collector unreachable: {exc}") from exc
        if response.status_code >= 300:
            raise LogForwardError(f"Log collector answered {response.status_code}")

    async def _deliver_with_retry(self, entry: dict[str, Any]) -> None:
        for attempt in range(1, self.config.max_attempts + 1):
            try:
                await self.deliver(entry)
            except LogForwardError as exc:
                if attempt == self.config.max_attempts:
                    LOG_FORWARD_TOTAL.labels(outcome="dropped").inc()
                    logger.error(
                        "Error posting log for request %s after %d attempts: %s",
                        entry.get("request_id"),
                        attempt,
                        exc,
                    )
                    return
                await asyncio.sleep(self.config.backoff_s * attempt)
            else:
                LOG_FORWARD_TOTAL.labels(outcome="delivered").inc()
                return

    async def _run(self) -> None:
        while True:
            entry = await self._queue.get()
            try:
                await self._deliver_with_retry(entry)
            except Exception:
                # The worker must outlive any single bad entry.
                logger.exception("Unexpected failure shipping log entry")
            finally:
                self._queue.task_done()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout_s,
                transport=self._transport,
            )
        return self._client

    async def start(self) -> None:
        if self._worker is not None:
            return
        self._worker = asyncio.create_task(self._run(), name="crudgate-log-forwarder")

    async def stop(self, timeout: float = 5.0) -> None:
        """
        Drain queued entries (bounded by ``timeout``), then stop the worker.
        """
        if self._worker is not None:
            try:
                await asyncio.wait_for(self._queue.join(), timeout)
            except asyncio.TimeoutError:
                logger.warning("Dropping %d undelivered log entries on shutdown", self.pending)
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

        if self._client is not None:
            await self._client.aclose()
            self._client = None
