from pydantic import BaseModel, Field


class OrderConfirmationRequest(BaseModel):
    order_id: str | None = Field(default=None, alias="orderId")
