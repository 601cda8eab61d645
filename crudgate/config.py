from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

DEFAULT_ALLOWED_COLUMNS: tuple[str, ...] = (
    "c1", "c2", "c3",
    "i1", "i2", "i3",
    "d1", "d2", "d3",
    "t1", "t2", "t3",
    "v1", "v2", "v3",
)

ENV_PREFIX = "CRUDGATE_"


def _split_list(raw: str | None) -> tuple[str, ...] | None:
    if raw is None:
        return None
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class DbConfig:
    default_table: str = "test1"
    id_column: str = "id"
    touch_column: str = "v2"
    allowed_columns: tuple[str, ...] = DEFAULT_ALLOWED_COLUMNS
    # empty means any well-formed identifier may be selected
    allowed_tables: tuple[str, ...] = ()
    persist_table_override: bool = True

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        self.allowed_columns = tuple(self.allowed_columns)
        self.allowed_tables = tuple(self.allowed_tables)
        if not self.allowed_columns:
            raise ValueError("allowed_columns must not be empty")
        if self.touch_column not in self.allowed_columns:
            raise ValueError(
                f"touch_column {self.touch_column!r} must be one of the allowed columns"
            )
        if self.allowed_tables and self.default_table not in self.allowed_tables:
            raise ValueError(
                f"default_table {self.default_table!r} is not in allowed_tables"
            )

    @property
    def permitted_keys(self) -> frozenset[str]:
        """Payload keys that pass the column guard: the allowed columns plus the id column."""
        return frozenset(self.allowed_columns) | {self.id_column}


@dataclass
class LogConfig:
    url: str = ""
    token: str = ""
    service_id: str = "dacds"
    instance_id: str = "dev1"
    timeout_s: float = 5.0
    queue_size: int = 1000
    max_attempts: int = 3
    backoff_s: float = 0.5
    error_level: int = 11

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.queue_size <= 0:
            raise ValueError("queue_size must be > 0")
        if self.max_attempts <= 0:
            raise ValueError("max_attempts must be > 0")
        if self.timeout_s <= 0:
            raise ValueError("timeout_s must be > 0")

    @property
    def enabled(self) -> bool:
        return bool(self.url)


@dataclass
class GatewayConfig:
    write_token: str
    database_url: str
    db: DbConfig = field(default_factory=DbConfig)
    log: LogConfig = field(default_factory=LogConfig)

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if not self.write_token:
            raise ValueError("write_token must be set; refusing to serve an open gateway")
        if not self.database_url:
            raise ValueError("database_url must be set")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "GatewayConfig":
        """
        Build a config from CRUDGATE_* environment variables.

        Unset variables fall back to the dataclass defaults.
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> str | None:
            return env.get(ENV_PREFIX + name)

        db_kwargs: dict = {}
        if get("DEFAULT_TABLE"):
            db_kwargs["default_table"] = get("DEFAULT_TABLE")
        if get("ID_COLUMN"):
            db_kwargs["id_column"] = get("ID_COLUMN")
        if get("TOUCH_COLUMN"):
            db_kwargs["touch_column"] = get("TOUCH_COLUMN")
        columns = _split_list(get("ALLOWED_COLUMNS"))
        if columns:
            db_kwargs["allowed_columns"] = columns
        tables = _split_list(get("ALLOWED_TABLES"))
        if tables is not None:
            db_kwargs["allowed_tables"] = tables
        if get("PERSIST_TABLE_OVERRIDE") is not None:
            db_kwargs["persist_table_override"] = _parse_bool(get("PERSIST_TABLE_OVERRIDE"))

        log_kwargs: dict = {}
        for key, attr, cast in (
            ("LOG_URL", "url", str),
            ("LOG_TOKEN", "token", str),
            ("SERVICE_ID", "service_id", str),
            ("INSTANCE_ID", "instance_id", str),
            ("LOG_TIMEOUT_S", "timeout_s", float),
            ("LOG_QUEUE_SIZE", "queue_size", int),
            ("LOG_MAX_ATTEMPTS", "max_attempts", int),
            ("LOG_BACKOFF_S", "backoff_s", float),
        ):
            raw = get(key)
            if raw is not None and raw != "":
                log_kwargs[attr] = cast(raw)

        return cls(
            write_token=get("WRITE_TOKEN") or "",
            database_url=get("DATABASE_URL") or "",
            db=DbConfig(**db_kwargs),
            log=LogConfig(**log_kwargs),
        )
