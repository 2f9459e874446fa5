from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.errors import BadRequestError
from shared.security.dependencies import verify_internal_api_key
from .client import ResendClient, get_email_client
from .schemas import OrderConfirmationRequest
from .service import NotificationService

router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()


@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "notification", "status": "running"}


@router.post("/order-confirmation")
async def order_confirmation(
    payload: OrderConfirmationRequest,
    db: AsyncSession = Depends(get_db),
    client: ResendClient = Depends(get_email_client),
):
    if not payload.order_id:
        raise BadRequestError("Missing orderId")
    result = await NotificationService.send_order_confirmation(db, client, payload.order_id)
    return {"success": True, "id": result.get("id")}
