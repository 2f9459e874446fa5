from datetime import datetime
from pydantic import BaseModel, Field


class CreateShipmentRequest(BaseModel):
    order_id: str = Field(alias="orderId")
    carrier: str = "packeta"
    pickup_point_id: str | None = Field(default=None, alias="pickupPointId")

    class Config:
        populate_by_name = True


class ShipmentResponse(BaseModel):
    id: str
    order_id: str = Field(serialization_alias="orderId")
    carrier: str
    tracking_number: str | None = Field(default=None, serialization_alias="trackingNumber")
    status: str
    label_url: str | None = Field(default=None, serialization_alias="labelUrl")
    created_at: datetime | None = Field(default=None, serialization_alias="createdAt")

    class Config:
        from_attributes = True
