import logging
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.config import settings
from app.core.exceptions import QuotaExceededError, ValidationError
from app.models.daily_limit_model import DailyLimit
from app.repository.base_repository import insert_or_ignore
from app.schemas.daily_limit_schema import DailyLimitStatus

logger = logging.getLogger(__name__)


class DailyLimitService:
    """
    System-wide upload cap. Each calendar day has its own counter row, so a
    new day starts from zero usage with the default cap until an admin sets it.
    """

    def today(self) -> str:
        if settings.QUOTA_TIMEZONE:
            return datetime.now(ZoneInfo(settings.QUOTA_TIMEZONE)).date().isoformat()
        return date.today().isoformat()

    async def _ensure_row(self, db: AsyncSession, day: str) -> None:
        await insert_or_ignore(
            db,
            DailyLimit,
            {"date": day, "max_uploads": settings.DAILY_UPLOAD_DEFAULT, "current_uploads": 0},
            index_elements=["date"],
        )

    async def get_status(self, db: AsyncSession, day: Optional[str] = None) -> DailyLimitStatus:
        day = day or self.today()
        result = await db.execute(
            select(DailyLimit.max_uploads, DailyLimit.current_uploads).filter(DailyLimit.date == day)
        )
        row = result.first()
        max_uploads, current_uploads = (row[0], row[1]) if row else (settings.DAILY_UPLOAD_DEFAULT, 0)
        return DailyLimitStatus(
            date=day,
            max_uploads=max_uploads,
            current_uploads=current_uploads,
            remaining=max(0, max_uploads - current_uploads),
        )

    async def admit_upload(self, db: AsyncSession) -> DailyLimitStatus:
        """
        Counts one upload against today's cap. The check and the increment are a
        single conditional UPDATE; the caller commits or rolls back together with
        the order it is creating.
        """
        day = self.today()
        await self._ensure_row(db, day)
        result = await db.execute(
            update(DailyLimit)
            .where(DailyLimit.date == day, DailyLimit.current_uploads < DailyLimit.max_uploads)
            .values(current_uploads=DailyLimit.current_uploads + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(f"Upload rejected: daily system limit reached for {day}")
            raise QuotaExceededError(
                "Daily system upload limit reached. The daily upload quota has been exhausted. "
                "Please try again tomorrow."
            )
        return await self.get_status(db, day)

    async def set_limit(
        self,
        db: AsyncSession,
        max_uploads: Optional[int] = None,
        remaining: Optional[int] = None,
    ) -> DailyLimitStatus:
        """
        Sets today's cap either absolutely or as "remaining slots today". The
        remaining form resolves against the usage at write time, so repeating
        the same edit always lands on current_uploads + remaining.
        """
        if (max_uploads is None) == (remaining is None):
            raise ValidationError("Provide exactly one of max_uploads or remaining")
        value = max_uploads if max_uploads is not None else remaining
        if value < 0:
            raise ValidationError("Max uploads must be >= 0")

        day = self.today()
        await self._ensure_row(db, day)
        if remaining is not None:
            new_max = DailyLimit.current_uploads + remaining
        else:
            new_max = max_uploads
        await db.execute(
            update(DailyLimit)
            .where(DailyLimit.date == day)
            .values(max_uploads=new_max)
            .execution_options(synchronize_session=False)
        )
        await db.commit()

        status = await self.get_status(db, day)
        logger.info(f"Daily limit for {day} set to {status.max_uploads} ({status.current_uploads} used)")
        return status


daily_limit_service = DailyLimitService()
