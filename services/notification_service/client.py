import httpx
import structlog

from shared.config import settings
from shared.errors import UpstreamServiceError
from shared.observability import restyle_upstream_errors_total

logger = structlog.get_logger(__name__)


class ResendClient:
    """Transactional email through the Resend REST API."""
    name = "resend"

    def __init__(
        self,
        api_url: str = settings.RESEND_API_URL,
        api_key: str = settings.RESEND_API_KEY,
        sender: str = settings.EMAIL_FROM,
        timeout: float = settings.HTTP_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.sender = sender
        self.timeout = timeout
        self.transport = transport

    async def send(self, to: str, subject: str, html: str) -> dict:
        if not self.api_key:
            raise UpstreamServiceError("Email provider not configured", "RESEND_API_KEY is not set", provider=self.name)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.api_url}/emails",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json={"from": self.sender, "to": to, "subject": subject, "html": html},
                )
        except httpx.HTTPError as e:
            restyle_upstream_errors_total.labels(provider=self.name).inc()
            raise UpstreamServiceError("Failed to send email", str(e), provider=self.name) from e

        if response.is_error:
            restyle_upstream_errors_total.labels(provider=self.name).inc()
            try:
                details = response.json()
            except ValueError:
                details = response.text
            logger.error("Resend API error", status_code=response.status_code, body=details)
            raise UpstreamServiceError("Failed to send email", details, provider=self.name)

        return response.json()


def get_email_client() -> ResendClient:
    """FastAPI dependency; tests override it with a recording fake."""
    return ResendClient()
