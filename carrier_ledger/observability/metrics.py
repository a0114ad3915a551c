"""
Prometheus metrics for carrier-ledger

Counters and histograms for ingestion, enrichment and review, registered on
a dedicated registry so tests and the CLI exporter see only ledger metrics.
"""
import os

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()


# =======================
# INGESTION METRICS
# =======================

rows_total = Counter(
    name="ledger_rows_total",
    documentation="Raw rows seen during ingestion",
    labelnames=["provider", "domain", "outcome"],  # outcome: staged, empty, dropped
    registry=REGISTRY,
)

batches_ingested_total = Counter(
    name="ledger_batches_ingested_total",
    documentation="Ingestion attempts per provider",
    labelnames=["provider", "domain", "status"],  # status: success, failure
    registry=REGISTRY,
)

ingestion_duration_seconds = Histogram(
    name="ledger_ingestion_duration_seconds",
    documentation="Time spent ingesting one file",
    labelnames=["provider", "domain"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
    registry=REGISTRY,
)

enrichment_diagnostics_total = Counter(
    name="ledger_enrichment_diagnostics_total",
    documentation="Row-level enrichment problems recorded",
    labelnames=["provider", "domain", "field_name"],
    registry=REGISTRY,
)

# =======================
# REVIEW METRICS
# =======================

review_decisions_total = Counter(
    name="ledger_review_decisions_total",
    documentation="Review decisions taken on batches",
    labelnames=["provider", "domain", "action", "status"],  # status: success, failure
    registry=REGISTRY,
)

records_promoted_total = Counter(
    name="ledger_records_promoted_total",
    documentation="Staged records promoted to permanent records",
    labelnames=["provider", "domain"],
    registry=REGISTRY,
)

approval_duration_seconds = Histogram(
    name="ledger_approval_duration_seconds",
    documentation="Time spent promoting one batch",
    labelnames=["provider", "domain"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """Metrics in Prometheus text format."""
    return generate_latest(REGISTRY)


def start_metrics_server(port: int | None = None) -> None:
    """
    Start the HTTP exporter for REGISTRY.

    Args:
        port: Port to listen on (defaults to env var METRICS_PORT or 8000)
    """
    from prometheus_client import start_http_server

    start_http_server(port or int(os.getenv("METRICS_PORT", "8000")), registry=REGISTRY)


class track_duration:
    """
    Context manager observing the duration of a block in a histogram.

    Usage:
        with track_duration(approval_duration_seconds, provider="FirstNet", domain="invoice"):
            ...
    """

    def __init__(self, histogram: Histogram, **labels):
        self.histogram = histogram
        self.labels = labels
        self.timer = None

    def __enter__(self):
        self.timer = self.histogram.labels(**self.labels).time()
        self.timer.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.timer.__exit__(exc_type, exc_val, exc_tb)
        return False


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    counter.labels(**labels).inc(value)


# =======================
# LEDGER HELPERS
# =======================

def record_ingestion(
    provider: str,
    domain: str,
    staged_rows: int,
    empty_rows: int,
    dropped_rows: int,
) -> None:
    """
    Record the row outcomes and success of one ingestion.

    Args:
        provider: Canonical provider name
        domain: invoice or inventory
        staged_rows: Rows that became staged records
        empty_rows: Blank rows skipped
        dropped_rows: Rows dropped by a failure boundary
    """
    increment_counter(rows_total, staged_rows, provider=provider, domain=domain, outcome="staged")
    increment_counter(rows_total, empty_rows, provider=provider, domain=domain, outcome="empty")
    increment_counter(rows_total, dropped_rows, provider=provider, domain=domain, outcome="dropped")
    increment_counter(batches_ingested_total, provider=provider, domain=domain, status="success")


def record_review(provider: str, domain: str, action: str, success: bool, promoted: int = 0) -> None:
    status = "success" if success else "failure"
    increment_counter(review_decisions_total, provider=provider, domain=domain, action=action, status=status)
    if promoted:
        increment_counter(records_promoted_total, promoted, provider=provider, domain=domain)
