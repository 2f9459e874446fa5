from shared.errors import BadRequestError
from .base import BaseCarrier
from .dpd import DpdCarrier
from .packeta import PacketaCarrier


class CarrierFactory:
    _carriers: dict[str, BaseCarrier] = {}

    @classmethod
    def get_carrier(cls, carrier_id: str) -> BaseCarrier:
        if carrier_id not in cls._carriers:
            if carrier_id in ("packeta", "foxpost"):
                cls._carriers[carrier_id] = PacketaCarrier(name=carrier_id)
            elif carrier_id == "dpd":
                cls._carriers[carrier_id] = DpdCarrier()
            else:
                raise BadRequestError(f"Unsupported carrier: {carrier_id}")

        return cls._carriers[carrier_id]


def get_carrier_factory():
    """FastAPI dependency; tests override it with a factory of fake carriers."""
    return CarrierFactory
