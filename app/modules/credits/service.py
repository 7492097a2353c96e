import logging

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.exceptions import InsufficientCreditsError, ValidationError
from app.models.credit_model import UserCredits
from app.repository.base_repository import insert_or_ignore
from app.schemas.user_schema import Credits

logger = logging.getLogger(__name__)


class CreditService:
    """Per-user slot ledger. Every mutation is a single conditional UPDATE."""

    async def get_balance(self, db: AsyncSession, user_id: int) -> Credits:
        result = await db.execute(
            select(UserCredits.slots_remaining, UserCredits.total_purchased).filter(UserCredits.user_id == user_id)
        )
        row = result.first()
        if row is None:
            return Credits(slots_remaining=0, total_purchased=0)
        return Credits(slots_remaining=row[0], total_purchased=row[1])

    async def reserve_slot(self, db: AsyncSession, user_id: int) -> int:
        """
        Spends one slot for an upload. Does not commit; the caller commits it
        together with the order row. Returns the remaining balance.
        """
        result = await db.execute(
            update(UserCredits)
            .where(UserCredits.user_id == user_id, UserCredits.slots_remaining > 0)
            .values(slots_remaining=UserCredits.slots_remaining - 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.info(f"User {user_id} attempted an upload with no slots left")
            raise InsufficientCreditsError("You have 0 upload slots. Please purchase slots to continue.")

        balance = await self.get_balance(db, user_id)
        return balance.slots_remaining

    async def grant_slots(self, db: AsyncSession, user_id: int, slots: int) -> Credits:
        """Adds purchased slots. Does not commit."""
        if slots <= 0:
            raise ValidationError("Slots to grant must be positive")

        await insert_or_ignore(
            db,
            UserCredits,
            {"user_id": user_id, "slots_remaining": 0, "total_purchased": 0},
            index_elements=["user_id"],
        )
        await db.execute(
            update(UserCredits)
            .where(UserCredits.user_id == user_id)
            .values(
                slots_remaining=UserCredits.slots_remaining + slots,
                total_purchased=UserCredits.total_purchased + slots,
            )
            .execution_options(synchronize_session=False)
        )
        logger.info(f"Granted {slots} slots to user {user_id}")
        return await self.get_balance(db, user_id)


credit_service = CreditService()
