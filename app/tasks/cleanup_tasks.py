# app/tasks/cleanup_tasks.py
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.celery_app import celery_app
from app.core.config import settings
from app.core.database import DatabaseManager
from app.core.uow import atomic
from app.modules.orders.service import report_file_path
from app.repository.order_repository import order_repository
from app.utils.file_manager import delete_stored_file

logger = logging.getLogger(__name__)


async def cleanup_old_orders_async(db: AsyncSession, hours_to_keep: int, now: Optional[datetime] = None) -> int:
    """
    Deletes orders created more than hours_to_keep hours ago. Their document
    and report files are removed only once the deletion is committed. Returns
    how many orders were removed.
    """
    cutoff = (now or datetime.utcnow()) - timedelta(hours=hours_to_keep)
    old_orders = await order_repository.list_created_before(db, cutoff)

    if not old_orders:
        logger.info(f"[CLEANUP] No orders older than {hours_to_keep} hours found")
        return 0

    logger.info(f"[CLEANUP] Found {len(old_orders)} orders older than {hours_to_keep} hours. Deleting...")
    paths = []
    async with atomic(db):
        for order in old_orders:
            paths.extend([
                order.local_file_path,
                report_file_path(order.report1_path),
                report_file_path(order.report2_path),
            ])
            await db.delete(order)

    for path in paths:
        delete_stored_file(path)

    logger.info(f"[CLEANUP] Successfully deleted {len(old_orders)} old orders")
    return len(old_orders)


async def _run_cleanup(hours_to_keep: int) -> int:
    # Each task run gets its own event loop, so it gets its own engine too
    manager = DatabaseManager()
    try:
        async with manager.async_session_maker() as db:
            return await cleanup_old_orders_async(db, hours_to_keep)
    finally:
        await manager.close()


@celery_app.task(name="tasks.cleanup_old_orders")
def cleanup_old_orders():
    """
    A periodic task to delete orders past the retention window.
    """
    logger.info("--- Running periodic task: Cleaning up old orders ---")
    try:
        return asyncio.run(_run_cleanup(settings.ORDER_RETENTION_HOURS))
    except Exception as e:
        logger.error(f"Error during cleanup_old_orders task: {e}")
        raise
