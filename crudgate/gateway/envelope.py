from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ..errors import GatewayError

UNKNOWN_REQUEST_ID = "unknown"

UNAUTHORIZED = "UNAUTHORIZED"
INVALID_TOKEN = "INVALID_TOKEN"
INVALID_JSON = "INVALID_JSON"
INVALID_FIELD = "INVALID_FIELD"
INVALID_TABLE = "INVALID_TABLE"
INVALID_COLUMNS = "INVALID_COLUMNS"
DB_ERROR = "DB_ERROR"

_SCALAR_TYPES = (str, int, float, bool, type(None))


class PrettyJSONResponse(JSONResponse):
    """JSON response rendered with two-space indentation."""

    def render(self, content: Any) -> bytes:
        return json.dumps(content, ensure_ascii=False, allow_nan=False, indent=2).encode("utf-8")


@dataclass(frozen=True)
class RequestEnvelope:
    request_id: str
    action: str
    payload: dict[str, Any]


def _request_id(body: dict[str, Any]) -> str:
    raw = body.get("request_id")
    if raw is None or raw == "":
        return UNKNOWN_REQUEST_ID
    # Non-string ids are echoed in their JSON spelling.
    return raw if isinstance(raw, str) else json.dumps(raw, ensure_ascii=False)


def _reject_constant(name: str) -> float:
    raise ValueError(f"{name} is not a valid JSON number")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"Number {text} is out of range")
    return value


def decode_request(raw: bytes) -> RequestEnvelope:
    """
    Parse a request body into an envelope.

    Only the envelope shape is checked here; payload values are checked by
    ``check_scalar_fields`` once the column guard has passed.

    Raises:
        GatewayError: INVALID_JSON if the body is not strict JSON (NaN and
            Infinity included), INVALID_FIELD if the payload is missing or
            not an object
    """
    try:
        body = json.loads(raw, parse_constant=_reject_constant, parse_float=_finite_float)
    except (ValueError, UnicodeDecodeError) as exc:
        raise GatewayError(INVALID_JSON, f"Invalid JSON body: {exc}") from exc

    if not isinstance(body, dict):
        raise GatewayError(INVALID_FIELD, "Request body must be a JSON object")

    request_id = _request_id(body)
    payload = body.get("payload")
    if not isinstance(payload, dict):
        raise GatewayError(
            INVALID_FIELD, "Field 'payload' must be a non-null object", request_id=request_id
        )

    action = body.get("action")
    # A missing or non-string action is left for the builder to reject as unknown.
    action = action.strip().lower() if isinstance(action, str) else ""

    return RequestEnvelope(request_id=request_id, action=action, payload=dict(payload))


def check_scalar_fields(fields: dict[str, Any], request_id: str | None = None) -> None:
    """Reject column values that are objects or lists with INVALID_FIELD."""
    for key, value in fields.items():
        if not isinstance(value, _SCALAR_TYPES):
            raise GatewayError(
                INVALID_FIELD,
                f"Field '{key}' must be a string, number or null",
                request_id=request_id,
            )


def ack(request_id: str, payload: Any = None) -> PrettyJSONResponse:
    body = {
        "type": "ack",
        "request_id": request_id,
        "payload": jsonable_encoder(payload if payload is not None else {}),
    }
    return PrettyJSONResponse(body, status_code=200)


def nack(request_id: str, code: str, message: str, status: int = 400) -> PrettyJSONResponse:
    body = {
        "type": "nack",
        "request_id": request_id,
        "payload": {"status": "error", "code": code, "message": message},
    }
    return PrettyJSONResponse(body, status_code=status)
