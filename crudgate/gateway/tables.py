from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Mapping

from ..config import DbConfig
from ..db.schema import validate_identifier
from ..errors import GatewayError
from .envelope import INVALID_TABLE

logger = logging.getLogger(__name__)

TABLE_NAME_KEY = "table_name"


@dataclass(frozen=True)
class TableSelection:
    name: str
    version: int


class TableState:
    """
    Process-wide default table, shared by every request.

    A single value behind a lock. Each change bumps ``version`` so callers can
    tell which default a request was resolved against. Concurrent overrides
    are last-writer-wins: two requests that both switch the table race, and a
    request without an override sees whichever write landed last.
    """

    def __init__(self, initial: str) -> None:
        self._lock = threading.Lock()
        self._name = initial
        self._version = 0

    def current(self) -> TableSelection:
        with self._lock:
            return TableSelection(self._name, self._version)

    def swap(self, name: str) -> TableSelection:
        with self._lock:
            if name != self._name:
                self._name = name
                self._version += 1
            return TableSelection(self._name, self._version)


def split_payload(payload: Mapping[str, Any]) -> tuple[Any, dict[str, Any]]:
    """Separate the table selector key from the column fields."""
    fields = {key: value for key, value in payload.items() if key != TABLE_NAME_KEY}
    return payload.get(TABLE_NAME_KEY), fields


class TableSelector:
    """
    Resolves the table a request targets.

    An explicit ``table_name`` wins for its own request. With
    ``persist_table_override`` on it also becomes the default for later
    requests that do not name a table.
    """

    def __init__(self, db_config: DbConfig, state: TableState | None = None) -> None:
        self.db_config = db_config
        self.state = state or TableState(db_config.default_table)

    def _validate(self, name: Any, request_id: str | None) -> str:
        try:
            validate_identifier(name, "table")
        except (TypeError, ValueError) as exc:
            raise GatewayError(INVALID_TABLE, str(exc), request_id=request_id) from exc
        if self.db_config.allowed_tables and name not in self.db_config.allowed_tables:
            raise GatewayError(
                INVALID_TABLE, f"Table {name!r} is not allowed", request_id=request_id
            )
        return name

    def resolve(self, override: Any, request_id: str | None = None) -> TableSelection:
        if override is None or override == "":
            return self.state.current()

        name = self._validate(override, request_id)
        if not self.db_config.persist_table_override:
            return TableSelection(name, self.state.current().version)

        selection = self.state.swap(name)
        logger.debug("Default table is %s (version %d)", selection.name, selection.version)
        return selection
