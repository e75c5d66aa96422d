"""Prometheus metrics instrumentation for summaries and reminder runs."""

from prometheus_client import Counter, Histogram, start_http_server

from financeapp.utils.logging import get_logger

logger = get_logger(__name__)

# ============================================================================
# Metric Definitions
# ============================================================================

summary_computations_total = Counter(
    "financeapp_summary_computations_total",
    "Total number of month summaries computed",
    ["provider", "outcome"],  # labels: in_process/precomputed, ok/degraded
)

reminder_batches_sent_total = Counter(
    "financeapp_reminder_batches_sent_total",
    "Total number of reminder notification batches delivered",
    ["notifier_type"],
)

reminder_audit_records_total = Counter(
    "financeapp_reminder_audit_records_total",
    "Total number of reminder audit records written",
    ["reminder_type"],
)

reminder_organization_failures_total = Counter(
    "financeapp_reminder_organization_failures_total",
    "Organizations skipped during a reminder run because of a failure",
    ["stage"],  # labels: memberships/audit
)

reminder_run_duration_seconds = Histogram(
    "financeapp_reminder_run_duration_seconds",
    "Time taken by a complete reminder run",
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 300.0),
)


# ============================================================================
# Metrics Server
# ============================================================================


def start_metrics_server(port: int = 8000) -> None:
    """Start the Prometheus metrics HTTP server."""
    start_http_server(port)
    logger.info("metrics_server_started", port=port)


# ============================================================================
# Recording helpers
# ============================================================================


def record_summary(provider: str, degraded: bool) -> None:
    summary_computations_total.labels(
        provider=provider, outcome="degraded" if degraded else "ok"
    ).inc()


def record_reminder_sent(notifier_type: str, count: int = 1) -> None:
    reminder_batches_sent_total.labels(notifier_type=notifier_type).inc(count)


def record_audit_written(reminder_type: str) -> None:
    reminder_audit_records_total.labels(reminder_type=reminder_type).inc()


def record_organization_failure(stage: str) -> None:
    reminder_organization_failures_total.labels(stage=stage).inc()


def observe_run_duration(seconds: float) -> None:
    reminder_run_duration_seconds.observe(seconds)
