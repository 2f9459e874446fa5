from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class PaymentState:
    payment_id: str
    status: str # provider vocabulary, e.g. Succeeded / Failed / Canceled / Prepared
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class PaymentStart:
    payment_id: str
    gateway_url: str
    raw: dict[str, Any] = field(default_factory=dict)


class BasePaymentProvider(ABC):
    """
    Abstract Base Class for payment gateways.
    Implementations raise UpstreamServiceError when the gateway rejects or fails a call.
    """
    name: str

    @abstractmethod
    async def get_payment_state(self, payment_id: str) -> PaymentState:
        """Authoritative status of a payment, queried from the gateway."""

    @abstractmethod
    async def start_payment(
        self,
        order_id: str,
        amount: float,
        currency: str,
        payer_email: str,
        items: list[dict[str, Any]],
    ) -> PaymentStart:
        """Open a hosted payment session and return where to redirect the payer."""
