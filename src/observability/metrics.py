"""
Prometheus metrics collection for payroll-recon

Counters and histograms for the reconciliation pipelines, kept in a private
registry. A run can dump them to a node-exporter textfile at exit.
"""
from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
    write_to_textfile,
)


# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# PIPELINE METRICS
# =======================

# Top-level query keys processed
keys_processed_total = Counter(
    name="recon_keys_processed_total",
    documentation="Total number of top-level query keys processed",
    labelnames=["pipeline", "status"],  # status: success, failed
    registry=REGISTRY,
)

# Output records produced
records_emitted_total = Counter(
    name="recon_records_emitted_total",
    documentation="Total number of output records produced",
    labelnames=["pipeline"],
    registry=REGISTRY,
)

# Primary records without a resolvable secondary key
records_skipped_total = Counter(
    name="recon_records_skipped_total",
    documentation="Total number of primary records skipped for lack of a secondary key",
    labelnames=["pipeline"],
    registry=REGISTRY,
)

# Rows written to report files
rows_written_total = Counter(
    name="recon_rows_written_total",
    documentation="Total number of rows written to report files",
    labelnames=["report"],
    registry=REGISTRY,
)

# =======================
# SOURCE METRICS
# =======================

source_requests_total = Counter(
    name="recon_source_requests_total",
    documentation="Total number of requests made to external systems",
    labelnames=["source", "outcome"],  # outcome: success, unavailable, invalid
    registry=REGISTRY,
)

source_request_duration_seconds = Histogram(
    name="recon_source_request_duration_seconds",
    documentation="Time spent waiting on external systems in seconds",
    labelnames=["source"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
    registry=REGISTRY,
)

# =======================
# LOOKUP CACHE METRICS
# =======================

lookup_cache_requests_total = Counter(
    name="recon_lookup_cache_requests_total",
    documentation="Lookup cache requests by result",
    labelnames=["cache", "result"],  # result: hit, miss
    registry=REGISTRY,
)

lookup_cache_failures_total = Counter(
    name="recon_lookup_cache_failures_total",
    documentation="Bulk lookups that failed and degraded to no enrichment",
    labelnames=["cache"],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def write_metrics_file(path: str) -> None:
    """
    Write all metrics to a textfile for the node-exporter textfile collector.

    Args:
        path: Destination file path
    """
    write_to_textfile(path, REGISTRY)


class track_duration:
    """
    Context manager for tracking operation duration

    Usage:
        with track_duration(source_request_duration_seconds, source="increase"):
            # do work
            pass
    """

    def __init__(self, histogram: Histogram, **labels):
        """
        Initialize duration tracker

        Args:
            histogram: Prometheus Histogram metric
            **labels: Label values for the metric
        """
        self.histogram = histogram
        self.labels = labels
        self.timer = None

    def __enter__(self):
        """Start timer"""
        self.timer = self.histogram.labels(**self.labels).time()
        self.timer.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Stop timer"""
        self.timer.__exit__(exc_type, exc_val, exc_tb)
        return False


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric
    """
    counter.labels(**labels).inc(value)


def get_counter_value(counter: Counter, **labels) -> float:
    """Current value of a labelled counter (0.0 if never incremented)."""
    value = REGISTRY.get_sample_value(f"{counter._name}_total", labels)
    return value or 0.0
