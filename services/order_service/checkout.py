import secrets
import string
import time
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

import structlog

from shared.errors import BadRequestError
from shared.saga import SagaOrchestrator
from services.inventory_service.repository import InventoryRepository
from services.inventory_service.service import InventoryService
from services.payment_service.models import Payment
from services.payment_service.repository import PaymentRepository
from services.payment_service.service import PaymentService

from .models import Address, Order, OrderItem, CouponUsage
from .repository import OrderRepository, CouponRepository
from .state import OrderStatus, PaymentStatus, advance_status, advance_payment_status

logger = structlog.get_logger(__name__)

SHIPPING_FEES = {"home": 1500, "dpd": 1200}
DEFAULT_SHIPPING_FEE = 990 # packeta / foxpost pickup points
VAT_RATE = 27

_ORDER_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


def shipping_fee_for(method: str) -> int:
    return SHIPPING_FEES.get(method, DEFAULT_SHIPPING_FEE)


def round_huf(amount) -> int:
    return int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def generate_order_number() -> str:
    suffix = "".join(secrets.choice(_ORDER_SUFFIX_ALPHABET) for _ in range(9))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


def calculate_discount(coupon, subtotal: float) -> int:
    if coupon.discount_type == "percentage":
        discount = subtotal * coupon.discount_value / 100
        if coupon.max_discount:
            discount = min(discount, coupon.max_discount)
    else:
        discount = coupon.discount_value
    return round_huf(min(discount, subtotal))


def split_vat(total_gross: float, vat_rate: int = VAT_RATE) -> tuple[float, float]:
    total_net = round(total_gross / (1 + vat_rate / 100), 2)
    return total_net, round(total_gross - total_net, 2)


# --- ACTIONS ---

async def price_items(ctx: dict):
    db, request = ctx["db"], ctx["request"]
    variant_ids = [item.variant_id for item in request.items]
    variants = {v.id: v for v in await InventoryRepository.get_variants(db, variant_ids)}

    missing = [vid for vid in variant_ids if vid not in variants]
    if missing:
        raise BadRequestError("Unknown variant", missing)

    # Prices are snapshotted from the catalog, never taken from the client
    ctx["lines"] = [(variants[item.variant_id], item.quantity) for item in request.items]
    ctx["items_total"] = sum(v.price_gross * qty for v, qty in ctx["lines"])
    ctx["shipping_fee"] = shipping_fee_for(request.shipping_method)


async def apply_coupon(ctx: dict):
    db, request = ctx["db"], ctx["request"]
    subtotal = ctx["items_total"] + ctx["shipping_fee"]
    ctx["coupon"] = None
    ctx["discount"] = 0

    if request.coupon_code:
        coupon = await CouponRepository.get_by_code(db, request.coupon_code)
        if coupon is None:
            raise BadRequestError("Invalid coupon code")

        valid_until = coupon.valid_until
        if valid_until is not None:
            if valid_until.tzinfo is None:
                valid_until = valid_until.replace(tzinfo=timezone.utc)
            if valid_until < datetime.now(timezone.utc):
                raise BadRequestError("Coupon expired")

        if coupon.usage_limit and coupon.usage_count >= coupon.usage_limit:
            raise BadRequestError("Coupon usage limit reached")

        if coupon.per_user_limit:
            used = await CouponRepository.count_user_usage(db, coupon.id, ctx["user_id"])
            if used >= coupon.per_user_limit:
                raise BadRequestError("Coupon already used")

        if coupon.min_order_value and subtotal < coupon.min_order_value:
            raise BadRequestError(f"Minimum order value: {round_huf(coupon.min_order_value)} HUF")

        ctx["coupon"] = coupon
        ctx["discount"] = calculate_discount(coupon, subtotal)

    ctx["total"] = round_huf(subtotal - ctx["discount"])


async def create_order(ctx: dict):
    db, request, user_id = ctx["db"], ctx["request"], ctx["user_id"]

    def address(kind: str) -> Address:
        return Address(
            user_id=user_id,
            type=kind,
            name=request.full_name,
            country=request.country,
            zip_code=request.zip_code,
            city=request.city,
            street=request.street,
            floor_door=request.floor_door,
            phone=request.phone,
        )

    billing, shipping = address("billing"), address("shipping")
    await OrderRepository.add_all(db, billing, shipping)

    total_net, total_vat = split_vat(ctx["total"])
    coupon = ctx["coupon"]
    order = Order(
        order_number=generate_order_number(),
        user_id=user_id,
        email=request.email,
        full_name=request.full_name,
        status=OrderStatus.PENDING.value,
        payment_status=PaymentStatus.PENDING.value,
        total_net=total_net,
        total_vat=total_vat,
        total_gross=ctx["total"],
        currency="HUF",
        shipping_method=request.shipping_method,
        shipping_fee_gross=ctx["shipping_fee"],
        pickup_point_id=request.pickup_point_id,
        billing_address_id=billing.id,
        shipping_address_id=shipping.id,
        coupon_id=coupon.id if coupon else None,
        discount_amount=ctx["discount"],
    )
    await OrderRepository.add_all(db, order)

    await OrderRepository.add_all(
        db,
        *[
            OrderItem(
                order_id=order.id,
                variant_id=variant.id,
                sku=variant.sku,
                title=variant.product.title,
                quantity=quantity,
                unit_price_gross=variant.price_gross,
                vat_rate=variant.vat_rate,
            )
            for variant, quantity in ctx["lines"]
        ],
    )

    if coupon:
        await CouponRepository.record_usage(
            db,
            CouponUsage(coupon_id=coupon.id, user_id=user_id, order_id=order.id, discount_amount=ctx["discount"]),
        )

    ctx["order"] = await OrderRepository.save(db, order)
    ctx["order_id"] = order.id
    logger.info("Order created", order_id=order.id, order_number=order.order_number, total_gross=ctx["total"])


async def collect_payment(ctx: dict):
    db, order = ctx["db"], ctx["order"]

    if ctx["payment_mode"] == "live":
        payment, start = await PaymentService.start_payment(db, ctx["provider"], order)
        ctx["payment_id"] = payment.provider_reference
        ctx["gateway_url"] = start.gateway_url
        return

    # Mock mode: the payment is captured synchronously
    payment = await PaymentRepository.create_payment(
        db,
        Payment(
            order_id=order.id,
            provider="mock",
            provider_reference=f"MOCK-{int(time.time() * 1000)}",
            amount=order.total_gross,
            currency=order.currency,
            status="captured",
        ),
    )
    advance_status(order, OrderStatus.PAID)
    advance_payment_status(order, PaymentStatus.PAID)
    for item in order.items:
        await InventoryService.decrement_for_order_item(db, item)
    await db.commit()
    ctx["payment_id"] = payment.provider_reference
    logger.info("Mock payment captured", order_id=order.id, payment_id=payment.provider_reference)


# --- COMPENSATIONS (Rollbacks) ---

async def cancel_order(ctx: dict):
    db, order_id = ctx["db"], ctx.get("order_id")
    if not order_id:
        return
    await db.rollback()
    order = await OrderRepository.get_order(db, order_id)
    if order and advance_status(order, OrderStatus.CANCELLED):
        await db.commit()
        logger.info("Order cancelled by checkout rollback", order_id=order_id)


# --- BUILDER FACTORY ---

def build_checkout_saga() -> SagaOrchestrator:
    saga = SagaOrchestrator("checkout")
    saga.add_step("price_items", price_items, None) # Read-only, no rollback needed
    saga.add_step("apply_coupon", apply_coupon, None)
    saga.add_step("create_order", create_order, cancel_order)
    saga.add_step("collect_payment", collect_payment, None)
    return saga
