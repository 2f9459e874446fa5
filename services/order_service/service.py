import time
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.errors import BadRequestError, NotFoundError
from shared.observability import restyle_checkout_total, restyle_checkout_duration_seconds

from .checkout import build_checkout_saga
from .repository import OrderRepository
from .schemas import CheckoutRequest, CheckoutResponse
from .state import OrderStatus, advance_status, can_transition

logger = structlog.get_logger(__name__)


class OrderService:
    @staticmethod
    async def checkout(db: AsyncSession, user_id: str, data: CheckoutRequest, provider, payment_mode: str | None = None):
        """
        Runs the checkout saga. Returns (CheckoutResponse, order).
        On failure after the order row exists, the order is cancelled before the error propagates.
        """
        mode = payment_mode or settings.CHECKOUT_PAYMENT_MODE
        if mode not in ("mock", "live"):
            raise ValueError(f"Unknown CHECKOUT_PAYMENT_MODE: {mode}")

        ctx = {"db": db, "user_id": user_id, "request": data, "provider": provider, "payment_mode": mode}
        started = time.perf_counter()
        try:
            await build_checkout_saga().execute(ctx)
        except Exception:
            restyle_checkout_total.labels(status="failed", payment_mode=mode).inc()
            raise
        finally:
            restyle_checkout_duration_seconds.observe(time.perf_counter() - started)

        restyle_checkout_total.labels(status="success", payment_mode=mode).inc()
        order = ctx["order"]
        response = CheckoutResponse(
            order_id=order.id,
            order_number=order.order_number,
            payment_mode=mode,
            payment_id=ctx.get("payment_id"),
            gateway_url=ctx.get("gateway_url"),
        )
        return response, order

    @staticmethod
    async def get_order(db: AsyncSession, order_id: str):
        order = await OrderRepository.get_order(db, order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    @staticmethod
    async def update_status(db: AsyncSession, order_id: str, status: OrderStatus):
        order = await OrderService.get_order(db, order_id)
        if not can_transition(order.status, status):
            raise BadRequestError(f"Illegal status transition: {order.status} -> {status.value}")
        advance_status(order, status)
        await db.commit()
        logger.info("Order status updated", order_id=order_id, status=order.status)
        return order

    @staticmethod
    async def cancel_order(db: AsyncSession, order_id: str):
        return await OrderService.update_status(db, order_id, OrderStatus.CANCELLED)
