import httpx

from shared.config import settings
from .base import BaseCarrier, ShipmentResult


class DpdCarrier(BaseCarrier):
    name = "dpd"
    tracking_base_url = "https://tracking.dpd.hu/parcel-tracking?parcelNumber="

    def __init__(
        self,
        api_url: str = settings.DPD_API_URL,
        api_key: str = settings.DPD_API_KEY,
        timeout: float = settings.HTTP_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(timeout, transport)
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key

    def build_payload(self, order, weight_kg: int) -> dict:
        address = order.shipping_address
        return {
            "reference": order.order_number,
            "recipient": {
                "name": (address.name if address else None) or order.full_name,
                "address": address.street if address else None,
                "city": address.city if address else None,
                "zip": address.zip_code if address else None,
                "country": (address.country if address else None) or "HU",
                "phone": address.phone if address else None,
                "email": order.email,
            },
            "parcel": {"weight": weight_kg, "reference": order.id},
            "service": "DPD Classic",
        }

    async def create_shipment(self, order, weight_kg, pickup_point_id=None) -> ShipmentResult:
        response = await self._request(
            "POST",
            f"{self.api_url}/shipment",
            "Failed to create shipment",
            json=self.build_payload(order, weight_kg),
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        data = response.json()
        tracking_number = data.get("parcel_number") or data.get("tracking_number")
        return ShipmentResult(
            tracking_number=str(tracking_number) if tracking_number is not None else None,
            label_url=data.get("label_url"),
            raw=data,
        )
