"""Prometheus metrics for projection volume, simulation guards and request latency"""

from prometheus_client import Counter, Histogram

# Projection metrics
projection_counter = Counter(
    "cashflow_projections_total",
    "Projected transactions generated",
    ["source_type"],  # income_source | expense_rule
)

merge_outcome_counter = Counter(
    "cashflow_merge_outcomes_total",
    "Merge decisions between stored transactions and projections",
    ["outcome"],  # projected | stored_override | stored_unmatched
)

# Termination guards
occurrence_cap_counter = Counter(
    "cashflow_occurrence_cap_hits_total",
    "Recurrence expansions truncated by the occurrence cap",
)

payoff_guard_counter = Counter(
    "cashflow_payoff_guard_total",
    "Payoff simulations stopped before reaching a zero balance",
    ["reason"],  # period_cap | minimum_payment_trap
)

negative_amortization_counter = Counter(
    "cashflow_negative_amortization_periods_total",
    "Periods where the payment did not cover interest and principal was clamped to zero",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_projection_run(projections: list, merged: list) -> None:
    """Record projection volume and how the merge resolved each projection"""
    for projection in projections:
        projection_counter.labels(source_type=projection.source_type.value).inc()

    emitted_projections = sum(1 for t in merged if t.is_projection)
    stored_wins = len(projections) - emitted_projections
    unmatched = len(merged) - len(projections)

    merge_outcome_counter.labels(outcome="projected").inc(emitted_projections)
    merge_outcome_counter.labels(outcome="stored_override").inc(max(stored_wins, 0))
    merge_outcome_counter.labels(outcome="stored_unmatched").inc(max(unmatched, 0))
