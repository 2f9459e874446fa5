from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from .models import Inventory, InventoryMovement, Variant

class InventoryRepository:
    # No commits here: decrements run inside the caller's reconciliation transaction.

    @staticmethod
    async def get_by_variant(db: AsyncSession, variant_id: str):
        result = await db.execute(select(Inventory).where(Inventory.variant_id == variant_id))
        return result.scalars().first()

    @staticmethod
    async def get_variants(db: AsyncSession, variant_ids: list[str]):
        result = await db.execute(select(Variant).where(Variant.id.in_(variant_ids)))
        return result.scalars().all()

    @staticmethod
    async def get_movement(db: AsyncSession, order_item_id: str):
        result = await db.execute(
            select(InventoryMovement).where(InventoryMovement.order_item_id == order_item_id)
        )
        return result.scalars().first()

    @staticmethod
    async def decrement(db: AsyncSession, variant_id: str, quantity: int) -> bool:
        """Atomic guarded debit; False when the row is missing or stock would go negative."""
        stmt = (
            update(Inventory)
            .where(Inventory.variant_id == variant_id)
            .where(Inventory.quantity_available >= quantity)
            .values(quantity_available=Inventory.quantity_available - quantity)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        return result.rowcount == 1

    @staticmethod
    async def add_movement(db: AsyncSession, movement: InventoryMovement):
        db.add(movement)
        # Flush now so a concurrent claim on the same order line fails here, not at commit
        await db.flush()
        return movement
