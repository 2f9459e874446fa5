from prometheus_client import Counter, Histogram

# Payment reconciliation
restyle_webhook_events_total = Counter(
    "restyle_webhook_events_total",
    "Payment webhook deliveries by outcome",
    ["outcome"] # Labels: 'processed', 'duplicate', 'invalid', 'provider_error', 'not_found', 'failed'
)

restyle_inventory_decrements_total = Counter(
    "restyle_inventory_decrements_total",
    "Inventory decrements applied for captured payments",
    ["result"] # Labels: 'applied', 'skipped' (ledger already had the order line)
)

# Fulfilment
restyle_shipments_created_total = Counter(
    "restyle_shipments_created_total",
    "Parcels registered with a carrier",
    ["carrier"]
)

# Checkout
restyle_checkout_total = Counter(
    "restyle_checkout_total",
    "Total checkouts processed",
    ["status", "payment_mode"] # status: 'success', 'failed'
)

restyle_checkout_duration_seconds = Histogram(
    "restyle_checkout_duration_seconds",
    "Checkout duration in seconds"
)

restyle_saga_compensation_total = Counter(
    "restyle_saga_compensation_total",
    "Total saga compensations triggered",
    ["step_name"]
)

# Third-party calls
restyle_upstream_errors_total = Counter(
    "restyle_upstream_errors_total",
    "Failed calls to payment, carrier, invoicing and email providers",
    ["provider"]
)
