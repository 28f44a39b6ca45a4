"""Prometheus metrics for monitoring alert volume, digest outcomes and mail delivery"""

from typing import Optional

from prometheus_client import Counter, Histogram

from debt_reminders.domain.models import AlertsData, DigestType, MessageStatus, OutcomeReason

# Alert metrics
alerts_counter = Counter(
    "debt_alerts_total",
    "Alerts produced by the classifier",
    ["kind"],  # OVERDUE | PROMISE_TODAY | DUE_TODAY | DUE_SOON | HIGH_PRIORITY
)

# Digest metrics
digest_outcome_counter = Counter(
    "debt_digest_outcomes_total",
    "Digest delivery outcomes per recipient",
    ["type", "status", "reason"],
)

# Mail relay metrics
mail_latency_histogram = Histogram(
    "mail_relay_latency_seconds",
    "Mail relay response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

mail_failure_counter = Counter(
    "mail_relay_failures_total",
    "Failed mail relay calls",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_alerts(alerts: AlertsData) -> None:
    """Count returned alerts by kind"""
    for item in alerts.items:
        alerts_counter.labels(kind=item.kind.value).inc()


def record_digest_outcome(
    digest_type: DigestType,
    status: MessageStatus,
    reason: Optional[OutcomeReason] = None,
) -> None:
    digest_outcome_counter.labels(
        type=digest_type.value,
        status=status.value,
        reason=reason.value if reason else "none",
    ).inc()
