import httpx
import structlog

from shared.config import settings
from shared.errors import UpstreamServiceError
from shared.observability import restyle_upstream_errors_total

logger = structlog.get_logger(__name__)


class BillingoClient:
    """Billingo v3 API: partners and invoice documents, authenticated by X-API-KEY."""
    name = "billingo"

    def __init__(
        self,
        api_url: str = settings.BILLINGO_API_URL,
        api_key: str = settings.BILLINGO_API_KEY,
        timeout: float = settings.HTTP_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    async def _post(self, path: str, payload: dict, error_message: str) -> dict:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.api_url}{path}", json=payload, headers={"X-API-KEY": self.api_key}
                )
        except httpx.HTTPError as e:
            restyle_upstream_errors_total.labels(provider=self.name).inc()
            raise UpstreamServiceError(error_message, str(e), provider=self.name) from e

        if response.is_error:
            restyle_upstream_errors_total.labels(provider=self.name).inc()
            try:
                details = response.json()
            except ValueError:
                details = response.text
            logger.error(error_message, status_code=response.status_code, body=details)
            raise UpstreamServiceError(error_message, details, provider=self.name)
        return response.json()

    async def create_partner(self, payload: dict) -> dict:
        return await self._post("/partners", payload, "Failed to create partner")

    async def create_document(self, payload: dict) -> dict:
        return await self._post("/documents", payload, "Failed to create invoice")

    def download_url(self, document_id) -> str:
        return f"{self.api_url}/documents/{document_id}/download"


def get_billingo_client() -> BillingoClient:
    """FastAPI dependency; tests override it with a recording fake."""
    return BillingoClient()
