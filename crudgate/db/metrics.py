from __future__ import annotations

from ..metrics.registry import DB_OP_LATENCY_SECONDS, DB_OPS_TOTAL

# Table label for names outside the configured set, keeping label cardinality fixed.
OTHER_TABLE_LABEL = "other"


def observe_db_op(table: str, action: str, status: str, latency_s: float) -> None:
    """Record one executed CRUD statement."""
    DB_OPS_TOTAL.labels(table=table, action=action, status=status).inc()
    DB_OP_LATENCY_SECONDS.labels(table=table, action=action).observe(latency_s)
