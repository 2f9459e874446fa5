import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import NotFoundError
from services.order_service.repository import OrderRepository

from .client import ResendClient
from .templates import render_order_confirmation

logger = structlog.get_logger(__name__)


class NotificationService:

    @staticmethod
    def build_order_confirmation(order) -> dict:
        subject, html = render_order_confirmation(order)
        return {"to": order.email, "subject": subject, "html": html}

    @staticmethod
    async def send_order_confirmation(db: AsyncSession, client: ResendClient, order_id: str) -> dict:
        order = await OrderRepository.get_order(db, order_id)
        if order is None:
            raise NotFoundError("Order not found")

        message = NotificationService.build_order_confirmation(order)
        result = await client.send(**message)
        logger.info("Order confirmation sent", order_id=order_id, email_id=result.get("id"))
        return result

    @staticmethod
    async def send_quietly(client: ResendClient, message: dict, order_id: str | None = None):
        """Background-task variant: never raises, a failed email must not fail the checkout."""
        try:
            result = await client.send(**message)
            logger.info("Order confirmation sent", order_id=order_id, email_id=result.get("id"))
        except Exception as e:
            logger.error("Email sending failed", order_id=order_id, error=str(e))
