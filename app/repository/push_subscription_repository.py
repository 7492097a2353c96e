from typing import List, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.push_subscription_model import PushSubscription
from app.repository.base_repository import BaseRepository


class PushSubscriptionRepository(BaseRepository[PushSubscription]):
    def __init__(self):
        super().__init__(PushSubscription)

    async def get_by_endpoint(self, db: AsyncSession, endpoint: str) -> Optional[PushSubscription]:
        result = await db.execute(select(PushSubscription).filter(PushSubscription.endpoint == endpoint))
        return result.scalar_one_or_none()

    async def list_for_users(self, db: AsyncSession, user_ids: List[int]) -> List[PushSubscription]:
        if not user_ids:
            return []
        result = await db.execute(select(PushSubscription).filter(PushSubscription.user_id.in_(user_ids)))
        return result.scalars().all()

    async def delete_for_user(self, db: AsyncSession, user_id: int) -> int:
        result = await db.execute(delete(PushSubscription).where(PushSubscription.user_id == user_id))
        return result.rowcount

    async def delete_by_endpoint(self, db: AsyncSession, endpoint: str) -> None:
        await db.execute(delete(PushSubscription).where(PushSubscription.endpoint == endpoint))


push_subscription_repository = PushSubscriptionRepository()
