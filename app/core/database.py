from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from app.core.config import settings
from typing import AsyncGenerator
import asyncio
import logging
from sqlalchemy.future import select
from app.models.base import Base

import app.models

logger = logging.getLogger(__name__)

DEFAULT_PACKAGES = [
    {
        "name": "1 Slot", "price": 100, "currency": "KSH", "slots": 1,
        "features": ["1 Document Check", "AI Detection", "Plagiarism Scan", "Instant Results"],
        "unavailable": False, "highlight": False,
    },
    {
        "name": "3 Slots", "price": 250, "currency": "KSH", "slots": 3,
        "features": ["3 Document Checks", "AI Detection", "Plagiarism Scan", "Best Value"],
        "unavailable": False, "highlight": True, "offer": "POPULAR",
    },
    {
        "name": "5 Slots", "price": 480, "currency": "KSH", "slots": 5,
        "features": ["5 Document Checks", "AI Detection", "Plagiarism Scan", "Priority Support"],
        "unavailable": True, "highlight": False,
    },
]

class DatabaseManager:
    def __init__(self, database_url: str = settings.DATABASE_URL):
        """Initializes the database engine and session maker upon creation."""
        engine_kwargs = {}
        if database_url.startswith("sqlite"):
            # SQLite connections are cheap and must not outlive the event loop that opened them
            engine_kwargs["poolclass"] = NullPool
        self.engine = create_async_engine(database_url, echo=False, **engine_kwargs)
        self.async_session_maker = async_sessionmaker(
            self.engine, expire_on_commit=False, class_=AsyncSession
        )

    async def close(self):
        """Closes the database engine connections."""
        if self.engine:
            await self.engine.dispose()

    async def get_db_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provides a database session."""
        async with self.async_session_maker() as session:
            yield session

db_manager = DatabaseManager()

async def seed_packages(db_session: AsyncSession):
    """Creates the default pricing packages when the table is empty."""
    from app.models.package_model import PricingPackage
    result = await db_session.execute(select(PricingPackage.id).limit(1))
    if result.scalar_one_or_none() is not None:
        return

    for data in DEFAULT_PACKAGES:
        db_session.add(PricingPackage(**data))
    await db_session.commit()
    logger.info(f"Seeded {len(DEFAULT_PACKAGES)} default pricing packages.")

async def promote_admin(db_session: AsyncSession):
    """Promotes the account registered under ADMIN_EMAIL, if any."""
    admin_email = settings.ADMIN_EMAIL
    if not admin_email:
        logger.warning("ADMIN_EMAIL not set. No account will be auto-promoted to admin.")
        return

    from app.models.user_model import Users as UserModel
    result = await db_session.execute(select(UserModel).filter(UserModel.email == admin_email.lower()))
    user = result.scalar_one_or_none()
    if not user or user.is_admin:
        return

    user.is_admin = True
    await db_session.commit()
    logger.info(f"Successfully promoted {admin_email} to admin")

async def init_db(drop: bool = False):
    """
    Creates all database tables, seeds default packages and promotes the admin account.
    """
    logger.info("Initializing database...")
    async with db_manager.engine.begin() as conn:
        if drop:
            logger.info("Dropping all existing tables...")
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with db_manager.async_session_maker() as db:
        await seed_packages(db)
        await promote_admin(db)

    logger.info("Database initialization finished successfully.")

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(init_db())
