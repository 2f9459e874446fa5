import pytest
from prometheus_client import REGISTRY
from sqlalchemy import select

from services.inventory_service.models import Inventory, InventoryMovement
from services.order_service.models import Order, OrderItem
from services.payment_service.models import Payment, WebhookEvent
from services.payment_service.service import map_provider_status

WEBHOOK = "/payments/barion-webhook"
STATE_PATH = "/v2/Payment/GetPaymentState"


def webhook_count(outcome: str) -> float:
    return REGISTRY.get_sample_value("restyle_webhook_events_total", {"outcome": outcome}) or 0.0


async def stock(fetch, variant) -> int:
    rows = await fetch(select(Inventory).where(Inventory.variant_id == variant.id))
    return rows[0].quantity_available


async def load(fetch, model, **filters):
    rows = await fetch(select(model).filter_by(**filters))
    return rows[0] if rows else None


async def test_succeeded_payment_marks_order_paid_and_decrements_stock(client, make_order, catalog, barion, fetch):
    order_id = await make_order(payment_reference="PAY123", total_gross=10000)
    barion.states["PAY123"] = "Succeeded"
    processed_before = webhook_count("processed")

    response = await client.post(WEBHOOK, json={"PaymentId": "PAY123"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "paymentStatus": "captured", "orderStatus": "paid"}
    assert response.headers["access-control-allow-origin"] == "*"

    payment = await load(fetch, Payment, provider_reference="PAY123")
    assert payment.status == "captured"
    assert payment.raw_payload["Status"] == "Succeeded"

    order = await load(fetch, Order, id=order_id)
    assert order.status == "paid"
    assert order.payment_status == "paid"
    assert await stock(fetch, catalog["jeans"]) == 3
    assert await stock(fetch, catalog["shirt"]) == 4

    event = await load(fetch, WebhookEvent, event_id="barion-PAY123")
    assert event.processed is True
    assert event.processed_at is not None
    assert event.error_message is None
    assert event.payload == {"PaymentId": "PAY123"}
    assert webhook_count("processed") == processed_before + 1


async def test_duplicate_delivery_is_acknowledged_without_side_effects(client, make_order, catalog, barion, upstream, fetch):
    await make_order(payment_reference="PAY123")
    barion.states["PAY123"] = "Succeeded"

    first = await client.post(WEBHOOK, json={"PaymentId": "PAY123"})
    assert first.status_code == 200
    state_calls = len(upstream.calls(STATE_PATH))

    second = await client.post(WEBHOOK, json={"PaymentId": "PAY123"})

    assert second.status_code == 200
    assert second.json() == {"success": True, "message": "Already processed"}
    assert len(upstream.calls(STATE_PATH)) == state_calls
    assert await stock(fetch, catalog["jeans"]) == 3
    assert await stock(fetch, catalog["shirt"]) == 4
    assert len(await fetch(select(WebhookEvent))) == 1
    assert len(await fetch(select(InventoryMovement))) == 2


async def test_replay_after_partial_failure_only_decrements_remaining_lines(client, db, make_order, catalog, barion, fetch):
    order_id = await make_order(payment_reference="PAY123")
    items = await fetch(select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.sku))
    jeans_line = next(item for item in items if item.variant_id == catalog["jeans"].id)

    # An earlier delivery claimed the event and debited the jeans line before dying
    db.add(WebhookEvent(event_id="barion-PAY123", provider="barion", event_type="payment_status", processed=False))
    db.add(InventoryMovement(order_item_id=jeans_line.id, variant_id=jeans_line.variant_id, quantity=2))
    jeans_stock = (await db.execute(select(Inventory).where(Inventory.variant_id == catalog["jeans"].id))).scalar_one()
    jeans_stock.quantity_available = 3
    await db.commit()

    barion.states["PAY123"] = "Succeeded"
    response = await client.post(WEBHOOK, json={"PaymentId": "PAY123"})

    assert response.status_code == 200
    assert await stock(fetch, catalog["jeans"]) == 3
    assert await stock(fetch, catalog["shirt"]) == 4
    assert (await load(fetch, WebhookEvent, event_id="barion-PAY123")).processed is True
    assert (await load(fetch, Order, id=order_id)).status == "paid"


@pytest.mark.parametrize(
    "provider_status, payment_status, order_status, order_payment_status",
    [
        ("Failed", "failed", "pending", "failed"),
        ("Canceled", "failed", "pending", "failed"),
        ("Prepared", "pending", "pending", "pending"),
    ],
)
async def test_non_success_statuses_leave_stock_alone(
    client, make_order, catalog, barion, fetch, provider_status, payment_status, order_status, order_payment_status
):
    order_id = await make_order(payment_reference="PAY123")
    barion.states["PAY123"] = provider_status

    response = await client.post(WEBHOOK, json={"PaymentId": "PAY123"})

    assert response.status_code == 200
    assert response.json()["paymentStatus"] == payment_status
    order = await load(fetch, Order, id=order_id)
    assert order.status == order_status
    assert order.payment_status == order_payment_status
    assert (await load(fetch, Payment, provider_reference="PAY123")).status == payment_status
    assert await stock(fetch, catalog["jeans"]) == 5
    assert await fetch(select(InventoryMovement)) == []


def test_status_mapping():
    assert map_provider_status("Succeeded") == ("captured", "paid", "paid")
    assert map_provider_status("Failed") == ("failed", None, "failed")
    assert map_provider_status("Canceled") == ("failed", None, "failed")
    assert map_provider_status("InProgress") == ("pending", None, None)


@pytest.mark.parametrize("body", [{}, {"PaymentId": ""}, {"paymentId": "PAY123"}, ["PAY123"]])
async def test_missing_payment_id_is_rejected_without_writes(client, upstream, fetch, body):
    invalid_before = webhook_count("invalid")

    response = await client.post(WEBHOOK, json=body)

    assert response.status_code == 400
    assert response.json()["error"] == "Missing PaymentId"
    assert response.json()["traceId"].startswith("payment-")
    assert await fetch(select(WebhookEvent)) == []
    assert upstream.calls(STATE_PATH) == []
    assert webhook_count("invalid") == invalid_before + 1


async def test_malformed_json_is_rejected(client, fetch):
    response = await client.post(WEBHOOK, content=b"{not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert await fetch(select(WebhookEvent)) == []


async def test_provider_error_is_recorded_and_event_stays_retryable(client, make_order, catalog, barion, fetch):
    order_id = await make_order(payment_reference="PAY123")
    # No state registered: the fake gateway answers with an Errors list

    response = await client.post(WEBHOOK, json={"PaymentId": "PAY123"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Payment provider error"
    assert "PaymentNotFound" in body["details"]

    event = await load(fetch, WebhookEvent, event_id="barion-PAY123")
    assert event.processed is False
    assert "PaymentNotFound" in event.error_message
    assert (await load(fetch, Order, id=order_id)).status == "pending"

    # The provider recovers; the same delivery now goes through
    barion.states["PAY123"] = "Succeeded"
    retry = await client.post(WEBHOOK, json={"PaymentId": "PAY123"})

    assert retry.status_code == 200
    event = await load(fetch, WebhookEvent, event_id="barion-PAY123")
    assert event.processed is True
    assert event.error_message is None
    assert await stock(fetch, catalog["jeans"]) == 3


async def test_unknown_payment_returns_404(client, barion, fetch):
    barion.states["PAY999"] = "Succeeded"

    response = await client.post(WEBHOOK, json={"PaymentId": "PAY999"})

    assert response.status_code == 404
    assert response.json()["error"] == "Payment not found in database"
    event = await load(fetch, WebhookEvent, event_id="barion-PAY999")
    assert event.processed is False
    assert event.error_message == "Payment not found in database"


async def test_insufficient_stock_rolls_back_the_whole_delivery(client, db, make_order, catalog, barion, fetch):
    order_id = await make_order(payment_reference="PAY123")
    shirt_stock = (await db.execute(select(Inventory).where(Inventory.variant_id == catalog["shirt"].id))).scalar_one()
    shirt_stock.quantity_available = 0
    await db.commit()
    barion.states["PAY123"] = "Succeeded"

    response = await client.post(WEBHOOK, json={"PaymentId": "PAY123"})

    assert response.status_code == 500
    assert "Insufficient stock" in response.json()["error"]
    # Jeans were debited first in the same transaction; that debit must be gone too
    assert await stock(fetch, catalog["jeans"]) == 5
    assert await fetch(select(InventoryMovement)) == []
    assert (await load(fetch, Payment, provider_reference="PAY123")).status == "pending"
    assert (await load(fetch, Order, id=order_id)).payment_status == "pending"
    event = await load(fetch, WebhookEvent, event_id="barion-PAY123")
    assert event.processed is False
    assert "Insufficient stock" in event.error_message


async def test_late_capture_never_moves_order_backwards(client, make_order, catalog, barion, fetch):
    order_id = await make_order(status="shipped", payment_status="pending", payment_reference="PAY123")
    barion.states["PAY123"] = "Succeeded"

    response = await client.post(WEBHOOK, json={"PaymentId": "PAY123"})

    assert response.status_code == 200
    order = await load(fetch, Order, id=order_id)
    assert order.status == "shipped"
    assert order.payment_status == "paid"


async def test_preflight_returns_cors_headers(client):
    response = await client.options(WEBHOOK)

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert "POST" in response.headers["access-control-allow-methods"]
    assert response.content == b""


async def test_rate_limit_rejects_before_any_work(client, upstream, fetch):
    for _ in range(100):
        response = await client.post(WEBHOOK, json={})
        assert response.status_code == 400

    response = await client.post(WEBHOOK, json={"PaymentId": "PAY123"})

    assert response.status_code == 429
    assert response.json()["error"] == "Too many requests"
    assert upstream.calls(STATE_PATH) == []
    assert await fetch(select(WebhookEvent)) == []


async def test_rate_limit_is_per_source_ip(client):
    for _ in range(100):
        await client.post(WEBHOOK, json={}, headers={"X-Forwarded-For": "203.0.113.7"})

    blocked = await client.post(WEBHOOK, json={}, headers={"X-Forwarded-For": "203.0.113.7"})
    other = await client.post(WEBHOOK, json={}, headers={"X-Forwarded-For": "198.51.100.2"})

    assert blocked.status_code == 429
    assert other.status_code == 400
