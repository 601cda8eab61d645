from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from ..errors import ActionError


class CrudAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    READ = "read"
    DELETE = "delete"

    @classmethod
    def parse(cls, raw: str) -> "CrudAction":
        """
        Resolve a normalized action string.

        The HTTP-verb spellings (post/put/get/delete) are accepted as aliases.
        """
        action = ACTION_ALIASES.get(raw)
        if action is None:
            raise ActionError("Unknown action")
        return action


ACTION_ALIASES: dict[str, CrudAction] = {
    "create": CrudAction.CREATE,
    "post": CrudAction.CREATE,
    "update": CrudAction.UPDATE,
    "put": CrudAction.UPDATE,
    "read": CrudAction.READ,
    "get": CrudAction.READ,
    "delete": CrudAction.DELETE,
}


@dataclass
class CrudOperation:
    """
    A single CRUD request against one table.
    """
    table: str
    action: str  # lowercase, not yet resolved to a CrudAction
    fields: Mapping[str, Any]  # column -> value, table selector key already removed
    # request_id and table_version of the table state the request resolved against
    metadata: Mapping[str, Any] = field(default_factory=dict)
