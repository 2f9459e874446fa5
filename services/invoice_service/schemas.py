from pydantic import BaseModel, Field


class InvoiceRequest(BaseModel):
    order_id: str = Field(alias="orderId")
