from __future__ import annotations

from typing import AbstractSet, Any, Iterable, Mapping

from ..errors import GatewayError
from .envelope import INVALID_COLUMNS


def invalid_columns(keys: Iterable[str], permitted: AbstractSet[str]) -> list[str]:
    return [key for key in keys if key not in permitted]


def guard_columns(
    fields: Mapping[str, Any],
    permitted: AbstractSet[str],
    request_id: str | None = None,
) -> None:
    """
    Reject the whole request if any field name is outside the permitted set.

    Offending keys are reported in payload order.
    """
    offending = invalid_columns(fields.keys(), permitted)
    if offending:
        raise GatewayError(
            INVALID_COLUMNS,
            f"Invalid columns: {', '.join(offending)}",
            request_id=request_id,
        )
