from __future__ import annotations

import hmac
from typing import Mapping

from ..errors import GatewayError
from .envelope import INVALID_TOKEN, UNAUTHORIZED

BEARER_PREFIX = "Bearer "


def extract_bearer(authorization: str | None) -> str | None:
    """Return the token of a ``Bearer <token>`` header, or None if absent or malformed."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


def authorize(headers: Mapping[str, str], write_token: str) -> None:
    """
    Gate a request on the shared write token.

    Raises:
        GatewayError: UNAUTHORIZED (401) without a bearer credential,
            INVALID_TOKEN (403) when the credential does not match
    """
    token = extract_bearer(headers.get("authorization"))
    if token is None:
        raise GatewayError(UNAUTHORIZED, "Missing or malformed bearer token", status=401)
    if not hmac.compare_digest(token.encode("utf-8"), write_token.encode("utf-8")):
        raise GatewayError(INVALID_TOKEN, "Invalid token", status=403)
