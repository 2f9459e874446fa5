from .base import BasePaymentProvider
from .barion import BarionProvider


class PaymentFactory:
    _providers: dict[str, BasePaymentProvider] = {}

    @classmethod
    def get_provider(cls, provider_id: str = "barion") -> BasePaymentProvider:
        if provider_id not in cls._providers:
            if provider_id == "barion":
                cls._providers[provider_id] = BarionProvider()
            else:
                raise ValueError(f"Unknown payment provider: {provider_id}")

        return cls._providers[provider_id]


def get_payment_provider() -> BasePaymentProvider:
    """FastAPI dependency; tests override it with an in-memory gateway."""
    return PaymentFactory.get_provider("barion")
