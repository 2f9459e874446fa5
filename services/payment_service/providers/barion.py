from typing import Any
import httpx
import structlog

from shared.config import settings
from shared.errors import UpstreamServiceError
from shared.observability import restyle_upstream_errors_total
from .base import BasePaymentProvider, PaymentStart, PaymentState

logger = structlog.get_logger(__name__)


def _error_text(data: Any) -> str:
    """Barion reports failures as Errors: [{ErrorCode, Title, Description}]."""
    if not isinstance(data, dict) or not data.get("Errors"):
        return "Unknown error"
    return "; ".join(
        f"{e.get('ErrorCode')}: {e.get('Title')} - {e.get('Description')}" for e in data["Errors"]
    )


class BarionProvider(BasePaymentProvider):
    """
    Barion Smart Gateway client (v2 API). Both calls authenticate with the POS key in the body.
    """
    name = "barion"

    def __init__(
        self,
        base_url: str = settings.BARION_API_URL,
        pos_key: str = settings.BARION_POS_KEY,
        timeout: float = settings.HTTP_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.pos_key = pos_key
        self.timeout = timeout
        self.transport = transport

    async def _post(self, path: str, payload: dict) -> dict:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, json=payload)
        except httpx.HTTPError as e:
            restyle_upstream_errors_total.labels(provider=self.name).inc()
            logger.error("Barion request failed", path=path, error=str(e))
            raise UpstreamServiceError("Payment provider unreachable", str(e), provider=self.name) from e

        try:
            data = response.json()
        except ValueError:
            data = {"body": response.text}

        if response.is_error or (isinstance(data, dict) and data.get("Errors")):
            restyle_upstream_errors_total.labels(provider=self.name).inc()
            logger.error("Barion API error", path=path, status_code=response.status_code, body=data)
            raise UpstreamServiceError("Payment provider error", _error_text(data), provider=self.name)
        return data

    async def get_payment_state(self, payment_id: str) -> PaymentState:
        data = await self._post(
            "/v2/Payment/GetPaymentState",
            {"POSKey": self.pos_key, "PaymentId": payment_id},
        )
        logger.info("Barion payment state", payment_id=payment_id, status=data.get("Status"))
        return PaymentState(payment_id=payment_id, status=data.get("Status") or "Unknown", raw=data)

    async def start_payment(self, order_id, amount, currency, payer_email, items) -> PaymentStart:
        payload = {
            "POSKey": self.pos_key,
            "PaymentType": "Immediate",
            "GuestCheckOut": False,
            "FundingSources": ["All"],
            "PaymentRequestId": order_id,
            "PayerHint": payer_email,
            "Locale": "hu-HU",
            "Currency": currency,
            "RedirectUrl": f"{settings.STOREFRONT_URL}/rendeles/{order_id}/megerosites",
            "CallbackUrl": settings.BARION_CALLBACK_URL,
            "Transactions": [
                {
                    "POSTransactionId": f"{order_id}-1",
                    "Payee": payer_email,
                    "Total": amount,
                    "Items": items,
                }
            ],
        }
        data = await self._post("/v2/Payment/Start", payload)
        logger.info("Barion payment started", order_id=order_id, payment_id=data.get("PaymentId"))
        return PaymentStart(payment_id=data["PaymentId"], gateway_url=data.get("GatewayUrl"), raw=data)
