from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from shared.config.database import get_db
from shared.security.dependencies import verify_internal_api_key
from .schemas import StockResponse
from .service import InventoryService

router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "inventory", "status": "running"}


@router.get("/{variant_id}", response_model=StockResponse)
async def get_stock(variant_id: str, db: AsyncSession = Depends(get_db)):
    return await InventoryService.get_stock(db, variant_id)
