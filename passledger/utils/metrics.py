"""
Prometheus-based metrics for production monitoring.
Provides /metrics endpoint for scraping.
"""
from prometheus_client import Counter, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response


# Counters
passes_purchased_total = Counter(
    "passes_purchased_total",
    "Total number of successful pass purchases",
    ["kind"],  # fresh, extend
)

purchases_rejected_total = Counter(
    "purchases_rejected_total",
    "Total number of rejected pass purchases",
    ["reason"],  # InsufficientPayment, RefundFailed, ReentrantCall
)

refunds_sent_total = Counter(
    "refunds_sent_total",
    "Total number of excess-payment refunds sent",
)

withdrawals_total = Counter(
    "withdrawals_total",
    "Total owner withdrawals",
    ["status"],  # ok, failed
)

admin_updates_total = Counter(
    "admin_updates_total",
    "Total owner configuration updates",
    ["field"],  # price, duration
)

unauthorized_calls_total = Counter(
    "unauthorized_calls_total",
    "Total owner-only calls rejected",
    ["operation"],
)

# Gauges
ledger_balance = Gauge(
    "ledger_balance",
    "Current ledger balance in smallest currency units",
)


# Metrics endpoint router
router = APIRouter()


@router.get("/metrics")
def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint for scraping."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
