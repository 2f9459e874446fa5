from pydantic import BaseModel, Field


class StartPaymentRequest(BaseModel):
    order_id: str = Field(alias="orderId")

    class Config:
        populate_by_name = True


class StartPaymentResponse(BaseModel):
    success: bool = True
    payment_id: str = Field(serialization_alias="paymentId")
    gateway_url: str | None = Field(default=None, serialization_alias="gatewayUrl")
