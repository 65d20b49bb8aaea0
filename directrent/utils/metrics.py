"""
Prometheus-based metrics for production monitoring.
Provides /metrics endpoint for scraping.
"""
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response


# Counters
contact_unlocks_total = Counter(
    "contact_unlocks_total",
    "Contact unlock attempts by outcome",
    ["result"],  # UNLOCKED, ALREADY_UNLOCKED, QUOTA_EXHAUSTED, NOT_FOUND
)

quota_denied_total = Counter(
    "quota_denied_total",
    "Quota exhausted denials",
    ["tier"],
)

payout_requests_total = Counter(
    "payout_requests_total",
    "Payout requests by method and outcome",
    ["method", "result"],  # CREATED, INSUFFICIENT_FUNDS
)

payout_settlements_total = Counter(
    "payout_settlements_total",
    "Terminal payout transitions",
    ["outcome"],  # COMPLETED, FAILED
)

consistency_faults_total = Counter(
    "consistency_faults_total",
    "Transactions abandoned after lock/store retries",
    ["operation"],
)

# Histograms
payout_amount = Histogram(
    "payout_amount",
    "Requested payout amounts",
    ["method"],
    buckets=[10, 50, 100, 250, 500, 1000, 2500, 5000],
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


class Metrics:
    """Thin helpers so services don't build label sets inline."""

    def inc_unlock(self, result: str) -> None:
        contact_unlocks_total.labels(result=result).inc()

    def inc_quota_denied(self, tier: str) -> None:
        quota_denied_total.labels(tier=tier).inc()

    def inc_payout_request(self, method: str, result: str, amount: float | None = None) -> None:
        payout_requests_total.labels(method=method, result=result).inc()
        if amount is not None:
            payout_amount.labels(method=method).observe(amount)

    def inc_settlement(self, outcome: str) -> None:
        payout_settlements_total.labels(outcome=outcome).inc()

    def inc_consistency_fault(self, operation: str) -> None:
        consistency_faults_total.labels(operation=operation).inc()


metrics = Metrics()
