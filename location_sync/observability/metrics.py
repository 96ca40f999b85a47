"""
Prometheus metrics collection for location-sync

This module provides metrics instrumentation for monitoring migration
runs, per-unit outcomes and source purge health.
"""
from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
)

from location_sync.core.models import RunResult, RunSummary


# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# RUN METRICS
# =======================

runs_total = Counter(
    name="location_sync_runs_total",
    documentation="Total number of orchestrator runs",
    labelnames=["status"],  # status: completed, skipped
    registry=REGISTRY,
)

run_in_progress = Gauge(
    name="location_sync_run_in_progress",
    documentation="Whether a migration run is currently executing (1) or not (0)",
    registry=REGISTRY,
)

last_successful_run_timestamp = Gauge(
    name="location_sync_last_successful_run_timestamp_seconds",
    documentation="Unix time of the last run in which no unit failed",
    registry=REGISTRY,
)

# =======================
# UNIT METRICS
# =======================

units_processed_total = Counter(
    name="location_sync_units_processed_total",
    documentation="Total number of unit migrations by outcome",
    labelnames=["unit_id", "outcome"],  # outcome: success, partial_failure, failure
    registry=REGISTRY,
)

records_total = Counter(
    name="location_sync_records_total",
    documentation="Records moved through each pipeline stage",
    labelnames=["unit_id", "stage"],  # stage: extracted, loaded, purged
    registry=REGISTRY,
)

unit_duration_seconds = Histogram(
    name="location_sync_unit_duration_seconds",
    documentation="Time spent migrating one unit in seconds",
    labelnames=["unit_id"],
    buckets=[0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 300.0, 900.0],
    registry=REGISTRY,
)

# =======================
# ERROR METRICS
# =======================

errors_total = Counter(
    name="location_sync_errors_total",
    documentation="Total number of errors by type and pipeline stage",
    labelnames=["unit_id", "error_type", "stage"],
    registry=REGISTRY,
)

purge_batch_failures_total = Counter(
    name="location_sync_purge_batch_failures_total",
    documentation="Delete batches that failed after a committed load",
    labelnames=["unit_id"],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric
    """
    if labels:
        counter.labels(**labels).inc(value)
    else:
        counter.inc(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    """
    Observe a value in a histogram metric

    Args:
        histogram: Prometheus Histogram metric
        value: Value to observe
        **labels: Label values for the metric
    """
    histogram.labels(**labels).observe(value)


def record_error(unit_id: str, error: BaseException, stage: str) -> None:
    """Count an error raised while a unit was in the given stage."""
    increment_counter(errors_total, 1, unit_id=unit_id, error_type=type(error).__name__, stage=stage)


def record_unit_result(result: RunResult) -> None:
    """
    Record the metrics of one finished unit.

    Args:
        result: Finalized RunResult
    """
    outcome = result.outcome.value if result.outcome else "unknown"
    increment_counter(units_processed_total, 1, unit_id=result.unit_id, outcome=outcome)
    increment_counter(records_total, result.records_extracted, unit_id=result.unit_id, stage="extracted")
    increment_counter(records_total, result.records_loaded, unit_id=result.unit_id, stage="loaded")
    increment_counter(records_total, result.records_purged, unit_id=result.unit_id, stage="purged")

    duration = result.duration_seconds
    if duration is not None:
        observe_histogram(unit_duration_seconds, duration, unit_id=result.unit_id)


def record_run_summary(summary: RunSummary) -> None:
    """
    Record the metrics of one finished (or skipped) run.

    Args:
        summary: RunSummary returned by the orchestrator
    """
    if summary.skipped:
        increment_counter(runs_total, 1, status="skipped")
        return

    increment_counter(runs_total, 1, status="completed")
    if summary.succeeded and summary.completed_at is not None:
        last_successful_run_timestamp.set(summary.completed_at.timestamp())
