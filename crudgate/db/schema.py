from __future__ import annotations

import re
import threading

from sqlalchemy import Column, Float, Integer, MetaData, String, Table, Text
from sqlalchemy.types import NullType, TypeEngine

from ..config import DbConfig

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
MAX_IDENTIFIER_LENGTH = 64

# Column type by name prefix: c1 is a string column, i1 an integer, and so on.
PREFIX_TYPES: dict[str, type[TypeEngine]] = {
    "c": String,
    "v": String,
    "i": Integer,
    "d": Float,
    "t": Text,
}


def validate_identifier(name: str, identifier_type: str = "identifier") -> str:
    """
    Validate that an identifier (table/column name) is safe to use as a SQL name.

    Identifiers are restricted to alphanumerics and underscores, must not start
    with a digit, and are capped at 64 characters (the MySQL limit, which is
    also the tightest of the supported backends).

    Args:
        name: The identifier to validate
        identifier_type: Description of the identifier (for error messages)

    Returns:
        The validated identifier (unchanged if valid)

    Raises:
        TypeError: If identifier is not a string
        ValueError: If identifier contains unsafe characters or is invalid

    Example:
        >>> validate_identifier("test1", "table")
        'test1'
        >>> validate_identifier("'; DROP TABLE--", "table")
        ValueError: Invalid table "'; DROP TABLE--": ...
    """
    if not isinstance(name, str):
        raise TypeError(f"{identifier_type} must be a string, got {type(name).__name__}")

    if not name:
        raise ValueError(f"{identifier_type} cannot be empty")

    if not _IDENTIFIER_RE.match(name):
        raise ValueError(
            f"Invalid {identifier_type} {name!r}: "
            "must start with letter/underscore and contain only alphanumeric characters and underscores"
        )

    if len(name) > MAX_IDENTIFIER_LENGTH:
        raise ValueError(
            f"{identifier_type} {name!r} exceeds the {MAX_IDENTIFIER_LENGTH}-character limit"
        )

    return name


def column_type(name: str) -> TypeEngine:
    type_cls = PREFIX_TYPES.get(name[:1])
    return type_cls() if type_cls is not None else NullType()


class SchemaRegistry:
    """
    Static description of every table the gateway may touch.

    Each table gets the same shape: the integer primary key plus the allowed
    columns. Statements are built against these ``Table`` objects, so a column
    name only ever reaches SQL text as a known ``Column``.
    """

    def __init__(self, db_config: DbConfig) -> None:
        self.db_config = db_config
        self.metadata = MetaData()
        self._lock = threading.Lock()
        for name in (db_config.allowed_columns + (db_config.id_column,)):
            validate_identifier(name, "column")

    def is_known(self, name: str) -> bool:
        """True for the default table and the configured ``allowed_tables``."""
        return name == self.db_config.default_table or name in self.db_config.allowed_tables

    def table(self, name: str) -> Table:
        """
        Return the ``Table`` for ``name``.

        Known tables are described once and cached on ``metadata``. Any other
        name gets a fresh description on a private ``MetaData`` so callers
        cannot grow the registry.
        """
        validate_identifier(name, "table")
        if not self.is_known(name):
            return Table(name, MetaData(), *self._columns())
        with self._lock:
            existing = self.metadata.tables.get(name)
            if existing is not None:
                return existing
            return Table(name, self.metadata, *self._columns())

    def _columns(self) -> list[Column]:
        id_column = self.db_config.id_column
        columns = [Column(id_column, Integer, primary_key=True, autoincrement=True)]
        columns.extend(
            Column(name, column_type(name))
            for name in self.db_config.allowed_columns
            if name != id_column
        )
        return columns
