from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload

from app.models.order_model import Order, OrderStatus
from app.repository.base_repository import BaseRepository

class OrderRepository(BaseRepository[Order]):
    def __init__(self):
        super().__init__(Order)

    async def get_with_user(self, db: AsyncSession, order_id: int) -> Optional[Order]:
        result = await db.execute(
            select(Order)
            .options(joinedload(Order.user))
            .filter(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_by_user(self, db: AsyncSession, user_id: int) -> List[Order]:
        result = await db.execute(
            select(Order).filter(Order.user_id == user_id).order_by(Order.created_at.desc(), Order.id.desc())
        )
        return result.scalars().all()

    async def list_all(self, db: AsyncSession) -> List[Order]:
        result = await db.execute(
            select(Order).options(joinedload(Order.user)).order_by(Order.created_at.desc(), Order.id.desc())
        )
        return result.scalars().all()

    async def transition(
        self, db: AsyncSession, order_id: int, from_status: OrderStatus, to_status: OrderStatus
    ) -> bool:
        """Moves an order between states only if it is still in from_status."""
        result = await db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == from_status)
            .values(status=to_status)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def user_owns_file(self, db: AsyncSession, user_id: int, file_path: str, stored_name: str) -> bool:
        """Documents are recorded by full path, reports by stored name. Both must match exactly."""
        result = await db.execute(
            select(Order.id)
            .filter(
                Order.user_id == user_id,
                or_(
                    Order.local_file_path == file_path,
                    Order.report1_path == stored_name,
                    Order.report2_path == stored_name,
                ),
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def list_created_before(self, db: AsyncSession, cutoff: datetime) -> List[Order]:
        result = await db.execute(select(Order).filter(Order.created_at < cutoff))
        return result.scalars().all()

    async def complete(
        self,
        db: AsyncSession,
        order_id: int,
        *,
        ai_score: float,
        sim_score: float,
        report1_path: str,
        report2_path: str,
    ) -> bool:
        """Attaches the results and closes the order, only from Processing."""
        result = await db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == OrderStatus.PROCESSING)
            .values(
                status=OrderStatus.COMPLETED,
                ai_score=ai_score,
                sim_score=sim_score,
                report1_path=report1_path,
                report2_path=report2_path,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

order_repository = OrderRepository()
