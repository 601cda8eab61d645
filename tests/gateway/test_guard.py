from __future__ import annotations

import pytest

from crudgate.config import DbConfig
from crudgate.errors import GatewayError
from crudgate.gateway.guard import guard_columns, invalid_columns

PERMITTED = DbConfig().permitted_keys


def test_allowed_fields_pass() -> None:
    guard_columns({"id": 1, "c1": "a", "v3": None}, PERMITTED)


def test_empty_payload_passes() -> None:
    guard_columns({}, PERMITTED)


def test_offending_keys_are_listed_in_payload_order() -> None:
    with pytest.raises(GatewayError) as info:
        guard_columns({"zeta": 1, "c1": "a", "alpha": 2}, PERMITTED, request_id="r-9")

    assert info.value.code == "INVALID_COLUMNS"
    assert info.value.message == "Invalid columns: zeta, alpha"
    assert info.value.request_id == "r-9"


def test_column_names_are_case_sensitive() -> None:
    assert invalid_columns(["C1", "c1"], PERMITTED) == ["C1"]


def test_sql_in_a_key_is_just_an_unknown_column() -> None:
    assert invalid_columns(["c1 = c1 OR 1=1 --"], PERMITTED) == ["c1 = c1 OR 1=1 --"]
