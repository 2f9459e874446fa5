from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from shared.config import settings
from shared.config.database import get_db
from shared.security import get_current_user, limiter
from shared.security.dependencies import verify_internal_api_key
from services.notification_service.client import ResendClient, get_email_client
from services.notification_service.service import NotificationService
from services.payment_service.providers.base import BasePaymentProvider
from services.payment_service.providers.factory import get_payment_provider
from .schemas import CheckoutRequest, CheckoutResponse, OrderResponse, StatusUpdate
from .service import OrderService

# Admin actions need the internal key; checkout authenticates the customer instead
router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()


@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "order", "status": "running"}


@public_router.post("/checkout", response_model=CheckoutResponse)
@limiter.limit(settings.PAYMENT_RATE_LIMIT)
async def checkout(
    request: Request,                          # REQUIRED: slowapi needs this to check IP/Headers
    payload: CheckoutRequest,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    provider: BasePaymentProvider = Depends(get_payment_provider),
    email_client: ResendClient = Depends(get_email_client),
):
    response, order = await OrderService.checkout(db, user_id, payload, provider)
    if response.payment_mode == "mock":
        message = NotificationService.build_order_confirmation(order)
        background_tasks.add_task(NotificationService.send_quietly, email_client, message, order.id)
    return response


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, db: AsyncSession = Depends(get_db)):
    return await OrderService.get_order(db, order_id)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_status(order_id: str, payload: StatusUpdate, db: AsyncSession = Depends(get_db)):
    return await OrderService.update_status(db, order_id, payload.status)


@router.patch("/{order_id}/cancel")
async def cancel_order(order_id: str, db: AsyncSession = Depends(get_db)):
    order = await OrderService.cancel_order(db, order_id)
    return {"message": "Order cancelled", "status": order.status}
