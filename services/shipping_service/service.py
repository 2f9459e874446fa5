import math
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import BadRequestError, NotFoundError
from shared.observability import restyle_shipments_created_total
from services.order_service.repository import OrderRepository
from services.order_service.state import OrderStatus, PaymentStatus, advance_status

from .models import Shipment
from .schemas import ShipmentResponse

logger = structlog.get_logger(__name__)

DEFAULT_ITEM_WEIGHT_G = 500


def parcel_weight_kg(order) -> int:
    """Whole kilograms, rounded up; items without a known weight count as 500 g each."""
    grams = sum(
        ((item.variant.weight_g if item.variant else None) or DEFAULT_ITEM_WEIGHT_G) * item.quantity
        for item in order.items
    )
    return math.ceil(grams / 1000)


def _dump(shipment: Shipment) -> dict:
    return ShipmentResponse.model_validate(shipment).model_dump(by_alias=True, mode="json")


class ShippingService:

    @staticmethod
    async def create_shipment(
        db: AsyncSession, factory, order_id: str, carrier_id: str, pickup_point_id: str | None = None
    ) -> dict:
        order = await OrderRepository.get_order(db, order_id)
        if order is None:
            raise NotFoundError("Order not found")
        if order.payment_status != PaymentStatus.PAID:
            raise BadRequestError("Order not paid")

        carrier = factory.get_carrier(carrier_id)
        weight = parcel_weight_kg(order)
        logger.info("Creating shipment", order_id=order_id, carrier=carrier_id, weight_kg=weight)

        # Raises before anything is written when the carrier refuses the parcel
        result = await carrier.create_shipment(order, weight, pickup_point_id or order.pickup_point_id)

        shipment = Shipment(
            order_id=order.id,
            carrier=carrier_id,
            tracking_number=result.tracking_number,
            status="pending",
            label_url=result.label_url,
        )
        db.add(shipment)
        if not advance_status(order, OrderStatus.PROCESSING):
            logger.info("Order status left unchanged", order_id=order_id, status=order.status)
        await db.commit()
        await db.refresh(shipment)

        restyle_shipments_created_total.labels(carrier=carrier_id).inc()
        logger.info("Shipment created", order_id=order_id, tracking_number=result.tracking_number)
        return {
            "success": True,
            "shipment": _dump(shipment),
            "trackingNumber": result.tracking_number,
            "labelUrl": result.label_url,
        }

    @staticmethod
    async def get_pickup_points(factory, country: str, carrier_id: str) -> dict:
        try:
            carrier = factory.get_carrier(carrier_id)
        except BadRequestError:
            logger.info("No pickup points for carrier", carrier=carrier_id)
            return {"success": True, "pickupPoints": []}
        points = await carrier.get_pickup_points(country)
        return {"success": True, "pickupPoints": points}

    @staticmethod
    async def track(db: AsyncSession, factory, tracking_number: str | None) -> dict:
        if not tracking_number:
            raise BadRequestError("Missing tracking number")

        result = await db.execute(select(Shipment).where(Shipment.tracking_number == tracking_number))
        shipment = result.scalars().first()
        if shipment is None:
            raise NotFoundError("Shipment not found")

        tracking_url = factory.get_carrier(shipment.carrier).tracking_url(tracking_number)

        return {"success": True, "shipment": _dump(shipment), "trackingUrl": tracking_url}
