"""Prometheus metrics for projection volume, duplicate handling and summary integrity"""

from typing import Iterable

from prometheus_client import Counter, Histogram

# Engine usage
operation_counter = Counter(
    "finance_engine_operations_total",
    "Engine operations executed",
    ["operation"],
)

# Duplicate detection
duplicate_match_counter = Counter(
    "finance_engine_duplicate_matches_total",
    "Purchase duplicate/overlap matches found",
    ["kind"],  # duplicate | overlap
)

duplicate_resolution_counter = Counter(
    "finance_engine_duplicate_resolutions_total",
    "Duplicate resolutions requested",
    ["action", "applied"],
)

# Integrity
integrity_check_counter = Counter(
    "finance_engine_integrity_checks_total",
    "Summary integrity check outcomes",
    ["status"],  # pass | warning | fail
)

# Planning
waterfall_suggestion_counter = Counter(
    "finance_engine_waterfall_suggestions_total",
    "Reallocation suggestions emitted",
    ["suggestion"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_operation(operation: str) -> None:
    operation_counter.labels(operation=operation).inc()


def record_duplicate_matches(kinds: Iterable[str]) -> None:
    for kind in kinds:
        duplicate_match_counter.labels(kind=kind).inc()


def record_duplicate_resolution(action: str, applied: bool) -> None:
    duplicate_resolution_counter.labels(action=action, applied=str(applied).lower()).inc()


def record_integrity_report(pass_count: int, warning_count: int, fail_count: int) -> None:
    """Record check outcomes for tracking summary drift over time"""
    for status, count in (("pass", pass_count), ("warning", warning_count), ("fail", fail_count)):
        if count:
            integrity_check_counter.labels(status=status).inc(count)


def record_waterfall(suggestion_ids: Iterable[str]) -> None:
    for suggestion_id in suggestion_ids:
        waterfall_suggestion_counter.labels(suggestion=suggestion_id).inc()
