from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload

from app.models.transaction_model import Transaction, TransactionStatus
from app.repository.base_repository import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    def __init__(self):
        super().__init__(Transaction)

    async def get_by_reference(self, db: AsyncSession, reference: str) -> Optional[Transaction]:
        result = await db.execute(select(Transaction).filter(Transaction.payment_reference == reference))
        return result.scalar_one_or_none()

    async def list_all(self, db: AsyncSession, limit: int = 500) -> List[Transaction]:
        result = await db.execute(
            select(Transaction)
            .options(joinedload(Transaction.user))
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .limit(limit)
        )
        return result.scalars().all()

    async def mark_completed(self, db: AsyncSession, transaction_id: int) -> bool:
        """
        Flips a pending transaction to completed. Returns False when another
        poller or verifier already resolved it, so the caller must not grant slots.
        """
        result = await db.execute(
            update(Transaction)
            .where(Transaction.id == transaction_id, Transaction.status == TransactionStatus.PENDING.value)
            .values(status=TransactionStatus.COMPLETED.value, completed_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def mark_failed(self, db: AsyncSession, transaction_id: int, reason: str) -> bool:
        result = await db.execute(
            update(Transaction)
            .where(Transaction.id == transaction_id, Transaction.status == TransactionStatus.PENDING.value)
            .values(status=TransactionStatus.FAILED.value, failure_reason=reason)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


transaction_repository = TransactionRepository()
