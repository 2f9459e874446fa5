from datetime import datetime
from typing import Literal
from pydantic import BaseModel, Field
from .state import OrderStatus


class CheckoutItem(BaseModel):
    variant_id: str = Field(alias="variantId")
    quantity: int = Field(gt=0)

    class Config:
        populate_by_name = True


class CheckoutRequest(BaseModel):
    email: str = Field(min_length=3)
    full_name: str = Field(alias="fullName", min_length=1)
    phone: str | None = None
    country: str = Field(default="HU", min_length=2, max_length=2)
    zip_code: str = Field(alias="zipCode")
    city: str
    street: str
    floor_door: str | None = Field(default=None, alias="floorDoor")
    shipping_method: Literal["packeta", "foxpost", "home", "dpd"] = Field(alias="shippingMethod")
    pickup_point_id: str | None = Field(default=None, alias="pickupPointId")
    coupon_code: str | None = Field(default=None, alias="couponCode")
    items: list[CheckoutItem] = Field(min_length=1)

    class Config:
        populate_by_name = True


class CheckoutResponse(BaseModel):
    success: bool = True
    order_id: str = Field(serialization_alias="orderId")
    order_number: str = Field(serialization_alias="orderNumber")
    payment_mode: str = Field(serialization_alias="paymentMode")
    payment_id: str | None = Field(default=None, serialization_alias="paymentId")
    gateway_url: str | None = Field(default=None, serialization_alias="gatewayUrl")


class OrderItemResponse(BaseModel):
    id: str
    variant_id: str = Field(serialization_alias="variantId")
    sku: str
    title: str
    quantity: int
    unit_price_gross: float = Field(serialization_alias="unitPriceGross")
    vat_rate: int = Field(serialization_alias="vatRate")

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: str
    order_number: str = Field(serialization_alias="orderNumber")
    email: str
    full_name: str | None = Field(default=None, serialization_alias="fullName")
    status: str
    payment_status: str = Field(serialization_alias="paymentStatus")
    total_net: float = Field(serialization_alias="totalNet")
    total_vat: float = Field(serialization_alias="totalVat")
    total_gross: float = Field(serialization_alias="totalGross")
    currency: str
    shipping_method: str = Field(serialization_alias="shippingMethod")
    shipping_fee_gross: float = Field(serialization_alias="shippingFeeGross")
    discount_amount: float = Field(serialization_alias="discountAmount")
    invoice_number: str | None = Field(default=None, serialization_alias="invoiceNumber")
    created_at: datetime | None = Field(default=None, serialization_alias="createdAt")
    items: list[OrderItemResponse] = []

    class Config:
        from_attributes = True


class StatusUpdate(BaseModel):
    status: OrderStatus
