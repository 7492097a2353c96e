from celery import Celery
from celery.schedules import crontab
from app.core.config import settings

# Initialize Celery
celery_app = Celery(
    "tasks",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=[
        "app.tasks.cleanup_tasks",
        "app.tasks.notification_tasks",
    ]
)

celery_app.conf.update(
    task_track_started=True,
    beat_schedule={
        'cleanup-old-orders-hourly': {
            'task': 'tasks.cleanup_old_orders',
            'schedule': crontab(minute=0),  # Runs every hour
        },
    },
)
