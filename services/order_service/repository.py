from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update
from .models import Order, Coupon, CouponUsage


class OrderRepository:
    @staticmethod
    async def get_order(db: AsyncSession, order_id: str):
        result = await db.execute(select(Order).where(Order.id == order_id))
        return result.scalars().first()

    @staticmethod
    async def add_all(db: AsyncSession, *rows):
        db.add_all(rows)
        await db.flush()

    @staticmethod
    async def save(db: AsyncSession, order: Order):
        await db.commit()
        # Reload so items and addresses added by id are attached to the instance
        result = await db.execute(
            select(Order).where(Order.id == order.id).execution_options(populate_existing=True)
        )
        return result.scalars().one()


class CouponRepository:
    @staticmethod
    async def get_by_code(db: AsyncSession, code: str):
        result = await db.execute(select(Coupon).where(Coupon.code == code.strip().upper()))
        return result.scalars().first()

    @staticmethod
    async def count_user_usage(db: AsyncSession, coupon_id: str, user_id: str) -> int:
        result = await db.execute(
            select(func.count(CouponUsage.id)).where(
                CouponUsage.coupon_id == coupon_id,
                CouponUsage.user_id == user_id,
            )
        )
        return result.scalar_one()

    @staticmethod
    async def record_usage(db: AsyncSession, usage: CouponUsage):
        db.add(usage)
        # Increment in SQL so two concurrent checkouts can't both read the same count
        await db.execute(
            update(Coupon)
            .where(Coupon.id == usage.coupon_id)
            .values(usage_count=Coupon.usage_count + 1)
            .execution_options(synchronize_session=False)
        )
        await db.flush()
