from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from shared.config.database import get_db
from shared.security.dependencies import verify_internal_api_key
from .client import BillingoClient, get_billingo_client
from .schemas import InvoiceRequest
from .service import InvoiceService

router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()


@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "invoice", "status": "running"}


@router.post("/create-invoice")
async def create_invoice(
    payload: InvoiceRequest,
    db: AsyncSession = Depends(get_db),
    client: BillingoClient = Depends(get_billingo_client),
):
    return await InvoiceService.create_invoice(db, client, payload.order_id)
