"""Prometheus metrics for the export service."""

from shared.metrics import get_counter, get_gauge, get_histogram

SERVICE = "export"

EXPORT_CYCLES = get_counter(
    "cycles_total",
    "Export cycles by outcome (uploaded, skipped, failed, busy)",
    SERVICE,
    labelnames=("outcome",),
)
EXPORT_UPLOADS = get_counter(
    "uploads_total",
    "CSV artifact uploads by data type and status",
    SERVICE,
    labelnames=("data_type", "status"),
)
EXPORT_ROWS = get_counter(
    "rows_total",
    "Aggregated rows written to CSV artifacts",
    SERVICE,
    labelnames=("data_type",),
)
EXPORT_ERRORS = get_counter(
    "errors_total",
    "Isolated export errors by stage (probe, aggregate, upload, cycle)",
    SERVICE,
    labelnames=("stage",),
)

CYCLE_DURATION = get_histogram(
    "cycle_duration_seconds",
    "Wall time of one export cycle",
    SERVICE,
    buckets=[0.1, 0.5, 1, 2, 5, 10, 30, 60, 120],
)
QUERY_LATENCY = get_histogram(
    "query_latency_seconds",
    "Time spent in a single ClickHouse export query",
    SERVICE,
    buckets=[0.01, 0.05, 0.1, 0.5, 1, 2, 5],
    labelnames=("query",),
)

WATERMARK = get_gauge(
    "watermark_timestamp_seconds",
    "End of the last processed export window (epoch seconds)",
    SERVICE,
)
CYCLE_IN_PROGRESS = get_gauge(
    "cycle_in_progress",
    "1 while an export cycle is running",
    SERVICE,
)
