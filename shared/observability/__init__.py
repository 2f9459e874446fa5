from .setup import setup_observability
from .request_context import trace_id_middleware, get_trace_id
from .metrics import (
    restyle_webhook_events_total,
    restyle_inventory_decrements_total,
    restyle_shipments_created_total,
    restyle_checkout_total,
    restyle_checkout_duration_seconds,
    restyle_saga_compensation_total,
    restyle_upstream_errors_total
)
