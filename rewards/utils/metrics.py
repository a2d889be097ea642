"""
Prometheus-based metrics for production monitoring.
Provides /metrics endpoint for scraping.
"""
from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest

# Counters
orders_created_total = Counter(
    "orders_created_total",
    "Total number of shop orders created",
)

orders_rejected_total = Counter(
    "orders_rejected_total",
    "Order attempts refused before creation",
    ["reason"],  # insufficient_tokens, not_found
)

order_status_updates_total = Counter(
    "order_status_updates_total",
    "Admin order status changes",
    ["status"],
)

slack_logins_total = Counter(
    "slack_logins_total",
    "Slack sign-in attempts",
    ["status"],  # ok, failed
)

shop_items_imported_total = Counter(
    "shop_items_imported_total",
    "Shop items processed by the catalog import",
    ["status"],  # ok, failed
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
