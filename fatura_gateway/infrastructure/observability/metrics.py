"""Prometheus metrics for statement recomputation and invoice payments"""

from typing import Iterable

from prometheus_client import Counter, Histogram

from fatura_gateway.domain.models import CardStatement

# Engine metrics
statement_recompute_histogram = Histogram(
    "fatura_statement_recompute_seconds",
    "Time spent recomputing card statements",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)

invoice_bucket_counter = Counter(
    "fatura_invoice_buckets_total",
    "Invoice buckets produced by recomputation",
    ["status"],  # open | paid
)

over_limit_counter = Counter(
    "fatura_cards_over_limit_total",
    "Statements computed with negative available credit",
)

# Register metrics
register_change_counter = Counter(
    "fatura_paid_invoice_changes_total",
    "Invoices marked or unmarked as paid",
    ["action"],  # mark | unmark
)

installment_payment_counter = Counter(
    "fatura_installment_payment_changes_total",
    "Installments marked or unmarked as paid",
    ["action"],  # mark | unmark
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_statements(statements: Iterable[CardStatement]) -> None:
    """Record bucket and credit metrics for one recomputation"""
    for statement in statements:
        for invoice in statement.invoices:
            invoice_bucket_counter.labels(status="paid" if invoice.paid else "open").inc()
        if statement.available_credit < 0:
            over_limit_counter.inc()
