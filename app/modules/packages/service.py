from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from app.core.exceptions import NotFoundError
from app.models.package_model import PricingPackage
from app.repository.package_repository import package_repository
from app.schemas.package_schema import PackageCreate, PackageUpdate

logger = logging.getLogger(__name__)


class PackageService:
    async def list_packages(self, db: AsyncSession) -> List[PricingPackage]:
        return await package_repository.list_all(db)

    async def get_package_by_id(self, db: AsyncSession, package_id: int) -> PricingPackage:
        package = await package_repository.get(db, package_id)
        if not package:
            raise NotFoundError("Package not found")
        return package

    async def create_package(self, db: AsyncSession, package_data: PackageCreate) -> PricingPackage:
        package = await package_repository.create(db, package_data)
        await db.commit()
        await db.refresh(package)
        logger.info(f"Package '{package.name}' created ({package.slots} slots at {package.price} {package.currency})")
        return package

    async def update_package(self, db: AsyncSession, package_id: int, package_data: PackageUpdate) -> PricingPackage:
        package = await self.get_package_by_id(db, package_id)
        package = await package_repository.update(db, package, package_data)
        await db.commit()
        await db.refresh(package)
        logger.info(f"Package {package_id} updated")
        return package

    async def delete_package(self, db: AsyncSession, package_id: int) -> None:
        # Past transactions keep their amount; their package_id is set to NULL
        package = await self.get_package_by_id(db, package_id)
        await package_repository.delete(db, package)
        await db.commit()
        logger.info(f"Package {package_id} deleted")


package_service = PackageService()
