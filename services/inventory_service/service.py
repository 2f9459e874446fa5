import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import InsufficientStockError, NotFoundError
from shared.observability import restyle_inventory_decrements_total

from .models import InventoryMovement
from .repository import InventoryRepository

logger = structlog.get_logger(__name__)


class InventoryService:

    @staticmethod
    async def decrement_for_order_item(db: AsyncSession, order_item, reason: str = "payment_captured") -> bool:
        """
        Debits stock for one order line exactly once.

        Returns False (and touches nothing) when the ledger shows the line was
        already debited, e.g. on a crash-recovery replay of a captured payment.
        """
        if await InventoryRepository.get_movement(db, order_item.id):
            logger.info("Inventory already decremented for order line", order_item_id=order_item.id)
            restyle_inventory_decrements_total.labels(result="skipped").inc()
            return False

        if not await InventoryRepository.decrement(db, order_item.variant_id, order_item.quantity):
            logger.error(
                "Failed to decrement inventory",
                variant_id=order_item.variant_id,
                quantity=order_item.quantity,
            )
            raise InsufficientStockError(order_item.variant_id, order_item.quantity)

        await InventoryRepository.add_movement(
            db,
            InventoryMovement(
                order_item_id=order_item.id,
                variant_id=order_item.variant_id,
                quantity=order_item.quantity,
                reason=reason,
            ),
        )
        restyle_inventory_decrements_total.labels(result="applied").inc()
        return True

    @staticmethod
    async def get_stock(db: AsyncSession, variant_id: str):
        inventory = await InventoryRepository.get_by_variant(db, variant_id)
        if not inventory:
            raise NotFoundError("Inventory not found")
        return inventory
