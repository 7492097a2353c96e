from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import db_manager


class UnitOfWork:
    """
    Minimal async Unit of Work helper for work that runs outside a request,
    such as background push sends and the periodic cleanup job.
    """

    def __init__(self, session_factory: Optional[Callable[[], AsyncSession]] = None):
        self._session_factory = session_factory or db_manager.async_session_maker

    @asynccontextmanager
    async def __call__(self) -> AsyncGenerator[AsyncSession, None]:
        async with self._session_factory() as session:
            async with atomic(session):
                yield session


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """Commits everything done inside the block, or rolls all of it back."""
    try:
        yield session
        await session.commit()
    except BaseException:
        await session.rollback()
        raise


unit_of_work = UnitOfWork()
