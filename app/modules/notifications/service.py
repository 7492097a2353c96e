import base64
import json
import logging
from typing import Any, Dict, List, Optional, Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from pydantic import ValidationError as PydanticValidationError
from pywebpush import WebPushException, webpush
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.uow import UnitOfWork, unit_of_work
from app.models.push_subscription_model import PushSubscription
from app.models.user_model import Users
from app.repository.push_subscription_repository import push_subscription_repository
from app.repository.user_repository import user_repository
from app.schemas.notification_schema import PushSubscriptionInfo

logger = logging.getLogger(__name__)

PUSH_TTL_SECONDS = 30
GONE_STATUSES = {404, 410}


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def generate_vapid_keys() -> Dict[str, str]:
    """Returns a fresh P-256 key pair in the base64url form browsers and pywebpush expect."""
    private_key = ec.generate_private_key(ec.SECP256R1())
    raw_private = private_key.private_numbers().private_value.to_bytes(32, "big")
    raw_public = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )
    return {"public_key": _b64url(raw_public), "private_key": _b64url(raw_private)}


class NotificationService:
    def __init__(self):
        self.public_key: Optional[str] = settings.VAPID_PUBLIC_KEY
        self.private_key: Optional[str] = settings.VAPID_PRIVATE_KEY

    def ensure_vapid_keys(self) -> None:
        if self.public_key and self.private_key:
            return
        keys = generate_vapid_keys()
        self.public_key = keys["public_key"]
        self.private_key = keys["private_key"]
        logger.warning(
            "VAPID keys not configured, generated a new pair. Subscriptions will not survive a restart "
            "unless these are saved to the environment."
        )
        logger.info(f"VAPID_PUBLIC_KEY={self.public_key}")
        logger.info(f"VAPID_PRIVATE_KEY={self.private_key}")

    def get_public_key(self) -> str:
        self.ensure_vapid_keys()
        return self.public_key

    @staticmethod
    def parse_subscription(subscription: Union[str, Dict[str, Any]]) -> PushSubscriptionInfo:
        """Accepts the browser PushSubscription as an object or as its JSON string."""
        if isinstance(subscription, str):
            try:
                subscription = json.loads(subscription)
            except json.JSONDecodeError:
                raise ValidationError("Invalid subscription format")
        try:
            return PushSubscriptionInfo.model_validate(subscription)
        except PydanticValidationError:
            raise ValidationError("Invalid subscription format")

    async def subscribe(
        self, db: AsyncSession, user: Users, subscription: Union[str, Dict[str, Any]]
    ) -> PushSubscription:
        info = self.parse_subscription(subscription)

        # One row per device; a known endpoint is re-pointed at the caller
        existing = await push_subscription_repository.get_by_endpoint(db, info.endpoint)
        if existing:
            existing.user_id = user.id
            existing.p256dh = info.keys.p256dh
            existing.auth = info.keys.auth
            record = existing
        else:
            record = PushSubscription(
                user_id=user.id,
                endpoint=info.endpoint,
                p256dh=info.keys.p256dh,
                auth=info.keys.auth,
            )
            db.add(record)
        await db.commit()
        await db.refresh(record)
        logger.info(f"Push subscription saved for user {user.id}")
        return record

    async def unsubscribe(self, db: AsyncSession, user: Users) -> int:
        removed = await push_subscription_repository.delete_for_user(db, user.id)
        await db.commit()
        logger.info(f"Removed {removed} push subscription(s) for user {user.id}")
        return removed

    def _send_one(self, subscription: Dict[str, Any], payload: str) -> None:
        webpush(
            subscription_info=subscription,
            data=payload,
            vapid_private_key=self.private_key,
            vapid_claims={"sub": settings.VAPID_SUBJECT},
            ttl=PUSH_TTL_SECONDS,
        )

    async def send_to_admins(
        self, title: str, body: str, url: str = "/admin", uow: Optional[UnitOfWork] = None
    ) -> int:
        """
        Pushes one notification to every admin device. Runs outside the request
        that triggered it, so it opens its own session. Returns the number of
        successful deliveries.
        """
        self.ensure_vapid_keys()
        payload = json.dumps({"title": title, "body": body, "url": url})

        async with (uow or unit_of_work)() as db:
            admin_ids = await user_repository.get_admin_ids(db)
            subscriptions: List[PushSubscription] = await push_subscription_repository.list_for_users(db, admin_ids)
            targets = [
                {"endpoint": s.endpoint, "keys": {"p256dh": s.p256dh, "auth": s.auth}}
                for s in subscriptions
            ]

            delivered = 0
            for target in targets:
                try:
                    await run_in_threadpool(self._send_one, target, payload)
                    delivered += 1
                except WebPushException as e:
                    status_code = getattr(e.response, "status_code", None)
                    logger.error(f"Error sending push notification to {target['endpoint']}: {e}")
                    if status_code in GONE_STATUSES:
                        await push_subscription_repository.delete_by_endpoint(db, target["endpoint"])
                        logger.info(f"Deleted expired push subscription {target['endpoint']}")

        return delivered


notification_service = NotificationService()
