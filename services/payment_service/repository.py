from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from .models import Payment, WebhookEvent


class PaymentRepository:
    @staticmethod
    async def create_payment(db: AsyncSession, payment: Payment):
        db.add(payment)
        await db.flush()
        return payment

    @staticmethod
    async def get_by_provider_reference(db: AsyncSession, provider: str, reference: str):
        result = await db.execute(
            select(Payment).where(Payment.provider == provider, Payment.provider_reference == reference)
        )
        return result.scalars().first()


class WebhookEventRepository:
    @staticmethod
    async def get_by_event_id(db: AsyncSession, event_id: str):
        result = await db.execute(select(WebhookEvent).where(WebhookEvent.event_id == event_id))
        return result.scalars().first()

    @staticmethod
    async def claim(db: AsyncSession, event: WebhookEvent) -> tuple[WebhookEvent, bool]:
        """
        Inserts the event under the unique event_id constraint.

        Returns (event, created). When another delivery already inserted the row the
        insert conflicts, the transaction is rolled back and the existing row is returned.
        """
        db.add(event)
        try:
            await db.commit()
            return event, True
        except IntegrityError:
            await db.rollback()
        existing = await WebhookEventRepository.get_by_event_id(db, event.event_id)
        return existing, False

    @staticmethod
    async def record_error(db: AsyncSession, event_id: str, message: str):
        event = await WebhookEventRepository.get_by_event_id(db, event_id)
        if event is None:
            return None
        event.error_message = message
        await db.commit()
        return event

    @staticmethod
    def mark_processed(event: WebhookEvent):
        # Committed together with the reconciliation writes
        event.processed = True
        event.processed_at = datetime.now(timezone.utc)
        event.error_message = None
