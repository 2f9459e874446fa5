from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from shared.errors import UpstreamServiceError
from shared.observability import restyle_upstream_errors_total

logger = structlog.get_logger(__name__)


@dataclass
class ShipmentResult:
    tracking_number: str | None
    label_url: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


class BaseCarrier(ABC):
    """
    Abstract Base Class for parcel carriers.
    Implementations raise UpstreamServiceError carrying the carrier's response body.
    """
    name: str
    tracking_base_url: str

    def __init__(self, timeout: float, transport: httpx.AsyncBaseTransport | None = None):
        self.timeout = timeout
        self.transport = transport

    @abstractmethod
    async def create_shipment(self, order, weight_kg: int, pickup_point_id: str | None = None) -> ShipmentResult:
        """Register a parcel for a paid order."""

    async def get_pickup_points(self, country: str) -> list[dict]:
        """Carriers without a branch API have no pickup points to offer."""
        return []

    def tracking_url(self, tracking_number: str) -> str:
        return f"{self.tracking_base_url}{tracking_number}"

    async def _request(self, method: str, url: str, error_message: str, **kwargs) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            restyle_upstream_errors_total.labels(provider=self.name).inc()
            logger.error("Carrier request failed", carrier=self.name, url=url, error=str(e))
            raise UpstreamServiceError(error_message, str(e), provider=self.name) from e

        if response.is_error:
            restyle_upstream_errors_total.labels(provider=self.name).inc()
            logger.error("Carrier API error", carrier=self.name, status_code=response.status_code, body=response.text)
            raise UpstreamServiceError(error_message, response.text, provider=self.name)
        return response
