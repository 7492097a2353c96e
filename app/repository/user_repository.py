from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func
from app.models import user_model
from app.repository.base_repository import BaseRepository
from typing import Optional, List

class UserRepository(BaseRepository[user_model.Users]):
    def __init__(self):
        super().__init__(user_model.Users)

    async def create_user(self, db: AsyncSession, user: user_model.Users) -> user_model.Users:
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    async def get_user(self, db: AsyncSession, user_id: int) -> Optional[user_model.Users]:
        return await self.get(db, user_id)

    async def get_user_by_email(self, db: AsyncSession, email: str) -> Optional[user_model.Users]:
        result = await db.execute(
            select(self.model).filter(func.lower(self.model.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def get_users(self, db: AsyncSession, skip: int = 0, limit: int = 1000) -> List[user_model.Users]:
        result = await db.execute(
            select(self.model).order_by(self.model.created_at.desc()).offset(skip).limit(limit)
        )
        return result.scalars().all()

    async def get_admin_ids(self, db: AsyncSession) -> List[int]:
        result = await db.execute(select(self.model.id).filter(self.model.is_admin.is_(True)))
        return [row[0] for row in result.all()]

user_repository = UserRepository()
