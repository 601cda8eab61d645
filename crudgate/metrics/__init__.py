from .registry import (
    DB_OP_LATENCY_SECONDS,
    DB_OPS_TOTAL,
    LOG_FORWARD_TOTAL,
    REQUESTS_TOTAL,
)

__all__ = [
    "DB_OPS_TOTAL",
    "DB_OP_LATENCY_SECONDS",
    "REQUESTS_TOTAL",
    "LOG_FORWARD_TOTAL",
]
