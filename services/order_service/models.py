import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from shared.config.database import Base

from services.inventory_service.models import Variant  # noqa: F401 (OrderItem.variant)


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Address(Base):
    __tablename__ = "addresses"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    type = Column(String, nullable=False) # billing, shipping
    name = Column(String, nullable=True)
    country = Column(String(2), nullable=False, default="HU")
    zip_code = Column(String, nullable=False)
    city = Column(String, nullable=False)
    street = Column(String, nullable=False)
    floor_door = Column(String, nullable=True)
    phone = Column(String, nullable=True)


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_uuid)
    order_number = Column(String, nullable=False, unique=True)
    user_id = Column(String(36), nullable=False, index=True)
    email = Column(String, nullable=False)
    full_name = Column(String, nullable=True)

    status = Column(String, nullable=False, default="pending") # see state.OrderStatus
    payment_status = Column(String, nullable=False, default="pending") # see state.PaymentStatus

    total_net = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    total_vat = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    total_gross = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    currency = Column(String(3), nullable=False, default="HUF")

    shipping_method = Column(String, nullable=False)
    shipping_fee_gross = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    pickup_point_id = Column(String, nullable=True)

    billing_address_id = Column(String(36), ForeignKey("addresses.id"), nullable=True)
    shipping_address_id = Column(String(36), ForeignKey("addresses.id"), nullable=True)
    coupon_id = Column(String(36), ForeignKey("coupons.id"), nullable=True)
    discount_amount = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)

    invoice_number = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), default=_now)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now)

    items = relationship("OrderItem", back_populates="order", lazy="selectin", order_by="OrderItem.id")
    billing_address = relationship("Address", foreign_keys=[billing_address_id], lazy="selectin")
    shipping_address = relationship("Address", foreign_keys=[shipping_address_id], lazy="selectin")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    variant_id = Column(String(36), ForeignKey("variants.id"), nullable=False)
    # Snapshot of the variant at checkout time
    sku = Column(String, nullable=False)
    title = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price_gross = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    vat_rate = Column(Integer, nullable=False, default=27)

    order = relationship("Order", back_populates="items")
    variant = relationship("Variant", lazy="selectin")


class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(String(36), primary_key=True, default=_uuid)
    code = Column(String, nullable=False, unique=True) # stored upper-case
    discount_type = Column(String, nullable=False) # percentage, fixed_amount
    discount_value = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    max_discount = Column(Numeric(12, 2, asdecimal=False), nullable=True)
    min_order_value = Column(Numeric(12, 2, asdecimal=False), nullable=True)
    valid_until = Column(DateTime(timezone=True), nullable=True)
    usage_limit = Column(Integer, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)
    per_user_limit = Column(Integer, nullable=True)


class CouponUsage(Base):
    __tablename__ = "coupon_usage"

    id = Column(Integer, primary_key=True, autoincrement=True)
    coupon_id = Column(String(36), ForeignKey("coupons.id"), nullable=False, index=True)
    user_id = Column(String(36), nullable=False)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False)
    discount_amount = Column(Numeric(12, 2, asdecimal=False), nullable=False)
