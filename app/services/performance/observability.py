"""Prometheus metrics for performance reporting."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REPORTS_GENERATED = Counter(
    "performance_reports_generated_total",
    "Weekly report generation attempts",
    ["scope_type", "outcome"],  # outcome: complete, partial, empty, failed, timeout
)

MEMBER_COLLECTION_FAILURES = Counter(
    "performance_member_collection_failures_total",
    "Members whose weekly metrics could not be collected",
    ["scope_type"],
)

REPORT_GENERATION_TIME = Histogram(
    "performance_report_generation_seconds",
    "Time to generate one weekly report",
    ["scope_type"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60, 120),
)

SCORING_CONFIG_UPDATES = Counter(
    "performance_scoring_config_updates_total",
    "Scoring configuration write attempts",
    ["status"],  # status: applied, rejected
)

KPI_ROLLOVERS = Counter(
    "performance_kpi_rollovers_total",
    "KPI records carried over into a new week",
)
