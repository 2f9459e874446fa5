import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from shared.config.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=_uuid)
    title = Column(String, nullable=False)

    variants = relationship("Variant", back_populates="product", lazy="selectin")


class Variant(Base):
    __tablename__ = "variants"

    id = Column(String(36), primary_key=True, default=_uuid)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False, index=True)
    sku = Column(String, nullable=False, unique=True)
    price_gross = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    vat_rate = Column(Integer, nullable=False, default=27)
    currency = Column(String(3), nullable=False, default="HUF")
    weight_g = Column(Integer, nullable=True) # parcel weight falls back to 500g when unknown

    product = relationship("Product", back_populates="variants", lazy="selectin")


class Inventory(Base):
    __tablename__ = "inventory"

    id = Column(Integer, primary_key=True, autoincrement=True)
    variant_id = Column(String(36), ForeignKey("variants.id"), nullable=False, unique=True)
    quantity_available = Column(Integer, nullable=False, default=0)


class InventoryMovement(Base):
    """
    Ledger of stock debits. One row per order line that has already been
    decremented; the unique order_item_id makes a replayed capture a no-op.
    """
    __tablename__ = "inventory_movements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_item_id = Column(String(36), nullable=False, unique=True)
    variant_id = Column(String(36), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    reason = Column(String, nullable=False, default="payment_captured")
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
