"""
Payment reconciliation and live payment start.

The webhook body is only trusted for the PaymentId. Status always comes from the
gateway, and every write for one delivery (payment, order, stock ledger,
processed flag) lands in a single commit so a crash mid-way leaves the event
unprocessed and the provider's retry converges to the same state.
"""
from typing import Any
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import BadRequestError, NotFoundError, ServiceError
from services.inventory_service.service import InventoryService
from services.order_service.models import Order
from services.order_service.repository import OrderRepository
from services.order_service.state import OrderStatus, PaymentStatus, advance_status, advance_payment_status

from .models import Payment, WebhookEvent
from .providers.base import BasePaymentProvider
from .repository import PaymentRepository, WebhookEventRepository

logger = structlog.get_logger(__name__)

# Gateway status -> (Payment.status, Order.status target, Order.payment_status target)
STATUS_MAP: dict[str, tuple[str, str | None, str | None]] = {
    "Succeeded": ("captured", OrderStatus.PAID, PaymentStatus.PAID),
    "Failed": ("failed", None, PaymentStatus.FAILED),
    "Canceled": ("failed", None, PaymentStatus.FAILED),
}


def map_provider_status(provider_status: str) -> tuple[str, str | None, str | None]:
    return STATUS_MAP.get(provider_status, ("pending", None, None))


def _error_message(exc: Exception) -> str:
    if isinstance(exc, ServiceError):
        if exc.details and not isinstance(exc, NotFoundError):
            return f"{exc.message}: {exc.details}"
        return exc.message
    return str(exc) or exc.__class__.__name__


class PaymentService:

    @staticmethod
    async def reconcile_webhook(
        db: AsyncSession, provider: BasePaymentProvider, payload: Any
    ) -> tuple[str, dict]:
        """
        Applies one gateway notification. Returns (outcome, response body).

        Raises BadRequestError for a payload without PaymentId (nothing written),
        UpstreamServiceError / NotFoundError / anything else after recording the
        error on the event, which stays unprocessed.
        """
        payment_id = payload.get("PaymentId") if isinstance(payload, dict) else None
        if not payment_id:
            raise BadRequestError("Missing PaymentId")
        payment_id = str(payment_id)

        event_id = f"{provider.name}-{payment_id}"
        event, created = await WebhookEventRepository.claim(
            db,
            WebhookEvent(
                event_id=event_id,
                provider=provider.name,
                event_type="payment_status",
                payload=payload,
                processed=False,
            ),
        )
        if event.processed:
            logger.info("Webhook already processed", event_id=event_id)
            return "duplicate", {"success": True, "message": "Already processed"}
        if not created:
            logger.info("Retrying unprocessed webhook", event_id=event_id)

        try:
            state = await provider.get_payment_state(payment_id)

            payment = await PaymentRepository.get_by_provider_reference(db, provider.name, payment_id)
            if payment is None:
                logger.error("Payment not found", payment_id=payment_id)
                raise NotFoundError("Payment not found in database")

            payment_status, order_target, payment_target = map_provider_status(state.status)
            order = payment.order

            payment.status = payment_status
            payment.raw_payload = state.raw

            if order_target and not advance_status(order, order_target):
                logger.warning(
                    "Skipping backwards order transition",
                    order_id=order.id,
                    current=order.status,
                    target=order_target.value,
                )
            if payment_target and not advance_payment_status(order, payment_target):
                logger.warning(
                    "Skipping backwards payment_status transition",
                    order_id=order.id,
                    current=order.payment_status,
                    target=payment_target.value,
                )

            if payment_status == "captured":
                for item in order.items:
                    await InventoryService.decrement_for_order_item(db, item)

            WebhookEventRepository.mark_processed(event)
            await db.commit()
        except Exception as e:
            await db.rollback()
            await WebhookEventRepository.record_error(db, event_id, _error_message(e))
            raise

        logger.info(
            "Webhook processed",
            event_id=event_id,
            payment_status=payment_status,
            order_status=order.status,
        )
        return "processed", {"success": True, "paymentStatus": payment_status, "orderStatus": order.status}

    @staticmethod
    def build_payment_items(order: Order) -> list[dict]:
        items = [
            {
                "Name": item.title,
                "Description": item.sku,
                "Quantity": item.quantity,
                "Unit": "db",
                "UnitPrice": item.unit_price_gross,
                "ItemTotal": item.unit_price_gross * item.quantity,
                "SKU": item.sku,
            }
            for item in order.items
        ]
        if order.shipping_fee_gross:
            items.append(
                {
                    "Name": "Szállítási költség",
                    "Description": "Házhozszállítás" if order.shipping_method == "home" else "Csomagpont",
                    "Quantity": 1,
                    "Unit": "db",
                    "UnitPrice": order.shipping_fee_gross,
                    "ItemTotal": order.shipping_fee_gross,
                    "SKU": "SHIPPING",
                }
            )
        return items

    @staticmethod
    async def start_payment(db: AsyncSession, provider: BasePaymentProvider, order: Order):
        """Opens a gateway session for the order and records a pending Payment."""
        start = await provider.start_payment(
            order_id=order.id,
            amount=order.total_gross,
            currency=order.currency,
            payer_email=order.email,
            items=PaymentService.build_payment_items(order),
        )
        payment = await PaymentRepository.create_payment(
            db,
            Payment(
                order_id=order.id,
                provider=provider.name,
                provider_reference=start.payment_id,
                amount=order.total_gross,
                currency=order.currency,
                status="pending",
                raw_payload=start.raw,
            ),
        )
        await db.commit()
        logger.info("Payment record created", order_id=order.id, payment_id=start.payment_id)
        return payment, start

    @staticmethod
    async def start_payment_for_order(
        db: AsyncSession, provider: BasePaymentProvider, order_id: str, user_id: str
    ):
        order = await OrderRepository.get_order(db, order_id)
        if order is None or order.user_id != user_id:
            raise NotFoundError("Order not found")
        if order.status != OrderStatus.PENDING or order.payment_status != PaymentStatus.PENDING:
            raise BadRequestError("Order is not awaiting payment")
        return await PaymentService.start_payment(db, provider, order)
