from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from shared.config.database import get_db
from shared.responses import error_response, preflight_response
from shared.security.dependencies import verify_internal_api_key
from .carriers.factory import get_carrier_factory
from .schemas import CreateShipmentRequest
from .service import ShippingService

# Parcel registration is an admin action; lookups are called by the storefront
router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()


@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "shipping", "status": "running"}


@router.post("/create-shipment")
async def create_shipment(
    payload: CreateShipmentRequest,
    db: AsyncSession = Depends(get_db),
    factory=Depends(get_carrier_factory),
):
    return await ShippingService.create_shipment(
        db, factory, payload.order_id, payload.carrier, payload.pickup_point_id
    )


@public_router.get("/pickup-points")
async def pickup_points(country: str = "HU", carrier: str = "packeta", factory=Depends(get_carrier_factory)):
    return await ShippingService.get_pickup_points(factory, country, carrier)


@public_router.get("/track")
async def track(tracking: str | None = None, db: AsyncSession = Depends(get_db), factory=Depends(get_carrier_factory)):
    return await ShippingService.track(db, factory, tracking)


# Registered last so the named actions above win
invalid_action_router = APIRouter()


@invalid_action_router.options("/{action}", include_in_schema=False)
async def preflight(action: str):
    return preflight_response()


@invalid_action_router.api_route("/{action}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def invalid_action(action: str):
    return error_response("Invalid action", 400)
