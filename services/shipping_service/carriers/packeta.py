import httpx

from shared.config import settings
from .base import BaseCarrier, ShipmentResult


def split_recipient_name(full_name: str | None) -> tuple[str, str]:
    """
    Packeta wants given name and surname separately. Hungarian names put the
    family name first, so "Kovács Anna" -> ("Anna", "Kovács").
    """
    parts = (full_name or "").strip().split(" ", 1)
    if len(parts) < 2:
        return parts[0] or "N/A", ""
    return parts[1], parts[0]


class PacketaCarrier(BaseCarrier):
    """
    Packeta (Zásilkovna) REST API. Foxpost parcels go through the same account,
    so the factory builds this class for both carriers under different names.
    """
    tracking_base_url = "https://tracking.packeta.com/hu/?id="

    def __init__(
        self,
        name: str = "packeta",
        api_url: str = settings.PACKETA_API_URL,
        branch_url: str = settings.PACKETA_BRANCH_URL,
        api_key: str = settings.PACKETA_API_KEY,
        api_password: str = settings.PACKETA_API_PASSWORD,
        eshop: str = settings.PACKETA_ESHOP,
        timeout: float = settings.HTTP_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(timeout, transport)
        self.name = name
        self.api_url = api_url.rstrip("/")
        self.branch_url = branch_url.rstrip("/")
        self.api_key = api_key
        self.api_password = api_password
        self.eshop = eshop

    def build_payload(self, order, weight_kg: int, pickup_point_id: str | None = None) -> dict:
        address = order.shipping_address
        name, surname = split_recipient_name((address.name if address else None) or order.full_name)
        return {
            "number": order.id,
            "name": name,
            "surname": surname,
            "email": order.email,
            "phone": (address.phone if address else None) or "",
            "addressId": pickup_point_id,
            "value": float(order.total_gross),
            "currency": order.currency or "HUF",
            "weight": weight_kg,
            "eshop": self.eshop,
        }

    async def create_shipment(self, order, weight_kg, pickup_point_id=None) -> ShipmentResult:
        response = await self._request(
            "POST",
            f"{self.api_url}/packet/create",
            "Failed to create shipment",
            json=self.build_payload(order, weight_kg, pickup_point_id),
            auth=(self.api_key, self.api_password),
        )
        data = response.json()
        tracking_number = data.get("id") or data.get("number")
        return ShipmentResult(
            tracking_number=str(tracking_number) if tracking_number is not None else None,
            label_url=data.get("labelUrl"),
            raw=data,
        )

    async def get_pickup_points(self, country: str) -> list[dict]:
        if self.name != "packeta":
            # Foxpost lockers are not in the Packeta branch feed
            return []
        response = await self._request(
            "GET",
            f"{self.branch_url}/{self.api_key}/branch.json",
            "Failed to fetch pickup points",
            params={"country": country},
        )
        return response.json().get("data") or []
