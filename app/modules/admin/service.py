from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.models.transaction_model import Transaction
from app.models.user_model import Users
from app.repository.transaction_repository import transaction_repository
from app.repository.user_repository import user_repository


async def list_users(db: AsyncSession) -> List[Users]:
    """All accounts, newest first, with their slot balances."""
    return await user_repository.get_users(db)


async def list_transactions(db: AsyncSession) -> List[Transaction]:
    return await transaction_repository.list_all(db)


async def get_user(db: AsyncSession, user_id: int) -> Users:
    return await user_repository.get_user(db, user_id=user_id)
