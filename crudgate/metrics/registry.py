from prometheus_client import Counter, Histogram

DB_OPS_TOTAL = Counter(
    "crudgate_db_ops_total",
    "CRUD statements executed against storage",
    ["table", "action", "status"],
)

DB_OP_LATENCY_SECONDS = Histogram(
    "crudgate_db_op_latency_seconds",
    "Latency of a single CRUD statement, session open to commit",
    ["table", "action"],
)

REQUESTS_TOTAL = Counter(
    "crudgate_requests_total",
    "Gateway responses by outcome code (ACK or a nack code)",
    ["code"],
)

LOG_FORWARD_TOTAL = Counter(
    "crudgate_log_forward_total",
    "Log collector deliveries by outcome",
    ["outcome"],
)
