# app/tasks/notification_tasks.py
import asyncio
import logging

from app.core.celery_app import celery_app
from app.core.database import DatabaseManager
from app.core.uow import UnitOfWork
from app.modules.notifications.service import notification_service

logger = logging.getLogger(__name__)


async def _send_admin_notification(title: str, body: str, url: str) -> int:
    manager = DatabaseManager()
    try:
        return await notification_service.send_to_admins(
            title, body, url, uow=UnitOfWork(manager.async_session_maker)
        )
    finally:
        await manager.close()


@celery_app.task(name="tasks.notify_admins")
def notify_admins(title: str, body: str, url: str = "/admin"):
    """
    Pushes a notification to every subscribed admin device. Delivery is best
    effort, so failures are logged and the task still succeeds.
    """
    try:
        delivered = asyncio.run(_send_admin_notification(title, body, url))
        logger.info(f"Admin notification '{title}' delivered to {delivered} device(s)")
        return delivered
    except Exception as e:
        logger.error(f"Failed to send admin notification '{title}': {e}")
        return 0


def dispatch_admin_notification(title: str, body: str, url: str = "/admin") -> None:
    """Queues notify_admins once the triggering change is committed."""
    try:
        notify_admins.delay(title, body, url)
    except Exception as e:
        logger.error(f"Could not queue admin notification '{title}': {e}")
