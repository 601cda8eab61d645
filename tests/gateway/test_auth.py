from __future__ import annotations

import pytest

from crudgate.errors import GatewayError
from crudgate.gateway.auth import authorize, extract_bearer


@pytest.mark.parametrize(
    "header, expected",
    [
        ("Bearer abc", "abc"),
        ("Bearer  abc ", "abc"),
        ("Bearer ", None),
        ("bearer abc", None),
        ("Basic abc", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_bearer(header, expected) -> None:
    assert extract_bearer(header) == expected


def test_matching_token_passes() -> None:
    authorize({"authorization": "Bearer s3cret"}, "s3cret")


def test_missing_header_is_unauthorized() -> None:
    with pytest.raises(GatewayError) as info:
        authorize({}, "s3cret")
    assert info.value.code == "UNAUTHORIZED"
    assert info.value.status == 401


def test_wrong_token_is_invalid_token() -> None:
    with pytest.raises(GatewayError) as info:
        authorize({"authorization": "Bearer nope"}, "s3cret")
    assert info.value.code == "INVALID_TOKEN"
    assert info.value.status == 403
