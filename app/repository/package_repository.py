from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.package_model import PricingPackage
from app.repository.base_repository import BaseRepository


class PackageRepository(BaseRepository[PricingPackage]):
    def __init__(self):
        super().__init__(PricingPackage)

    async def list_all(self, db: AsyncSession) -> List[PricingPackage]:
        result = await db.execute(select(PricingPackage).order_by(PricingPackage.price.asc()))
        return result.scalars().all()

    async def get_available_by_slots(self, db: AsyncSession, slots: int) -> Optional[PricingPackage]:
        stmt = (
            select(PricingPackage)
            .where(PricingPackage.slots == slots, PricingPackage.unavailable.is_(False))
            .order_by(PricingPackage.price.asc())
        )
        result = await db.execute(stmt)
        return result.scalars().first()

    async def consume_inventory(self, db: AsyncSession, package_id: int) -> None:
        """Takes one unit off a tracked inventory, never below zero."""
        await db.execute(
            update(PricingPackage)
            .where(
                PricingPackage.id == package_id,
                PricingPackage.available_slots.is_not(None),
                PricingPackage.available_slots > 0,
            )
            .values(available_slots=PricingPackage.available_slots - 1)
            .execution_options(synchronize_session=False)
        )


package_repository = PackageRepository()
