"""
Payment endpoints.

barion-webhook is called by the gateway itself, so it is unauthenticated and
budgeted per source IP instead. barion-payment is called by a signed-in
customer re-trying payment for one of their pending orders.
"""
import json
import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.config.database import get_db
from shared.errors import ServiceError, UpstreamServiceError
from shared.observability import get_trace_id, restyle_webhook_events_total
from shared.responses import json_response, error_response, preflight_response
from shared.security import get_current_user, limiter, webhook_source_key

from .providers.base import BasePaymentProvider
from .providers.factory import get_payment_provider
from .schemas import StartPaymentRequest, StartPaymentResponse
from .service import PaymentService

logger = structlog.get_logger(__name__)

router = APIRouter()
public_router = APIRouter()  # For any public endpoints (e.g. health check)

WEBHOOK_OUTCOMES = {400: "invalid", 404: "not_found"}


@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "payment", "status": "running"}


@router.options("/barion-webhook", include_in_schema=False)
async def barion_webhook_preflight():
    return preflight_response()


@router.post("/barion-webhook")
@limiter.limit(settings.WEBHOOK_RATE_LIMIT, key_func=webhook_source_key)
async def barion_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    provider: BasePaymentProvider = Depends(get_payment_provider),
):
    trace_id = get_trace_id(request)
    try:
        payload = json.loads(await request.body() or b"null")
    except ValueError:
        payload = None
    logger.info("Webhook received", payment_id=payload.get("PaymentId") if isinstance(payload, dict) else None)

    try:
        outcome, body = await PaymentService.reconcile_webhook(db, provider, payload)
    except ServiceError as e:
        if isinstance(e, UpstreamServiceError):
            outcome = "provider_error"
        else:
            outcome = WEBHOOK_OUTCOMES.get(e.status_code, "failed")
        restyle_webhook_events_total.labels(outcome=outcome).inc()
        logger.warning("Webhook rejected", outcome=outcome, error=e.message)
        details = e.details if isinstance(e, UpstreamServiceError) else None
        return error_response(e.message, e.status_code, trace_id, details)
    except Exception as e:
        restyle_webhook_events_total.labels(outcome="failed").inc()
        logger.error("Webhook processing failed", error=str(e), exc_info=e)
        return error_response(str(e), 500, trace_id)

    restyle_webhook_events_total.labels(outcome=outcome).inc()
    return json_response(body)


@router.post("/barion-payment", response_model=StartPaymentResponse)
@limiter.limit(settings.PAYMENT_RATE_LIMIT)
async def start_barion_payment(
    request: Request,
    payload: StartPaymentRequest,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    provider: BasePaymentProvider = Depends(get_payment_provider),
):
    payment, start = await PaymentService.start_payment_for_order(db, provider, payload.order_id, user_id)
    return StartPaymentResponse(payment_id=payment.provider_reference, gateway_url=start.gateway_url)
