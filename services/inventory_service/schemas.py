from pydantic import BaseModel, Field


class StockResponse(BaseModel):
    variant_id: str = Field(serialization_alias="variantId")
    quantity_available: int = Field(serialization_alias="quantityAvailable")

    class Config:
        from_attributes = True
