from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_current_admin
from app.models.user_model import Users
from app.schemas.notification_schema import SubscribeRequest, VapidPublicKey
from app.modules.notifications.service import notification_service

router = APIRouter(
    prefix="/admin",
    tags=["Notifications"],
    dependencies=[Depends(get_current_admin)],
)


@router.get("/vapid-public-key", response_model=VapidPublicKey)
async def get_vapid_public_key():
    return VapidPublicKey(publicKey=notification_service.get_public_key())


@router.post("/subscribe-notifications")
async def subscribe_notifications(
    payload: SubscribeRequest,
    current_user: Users = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    await notification_service.subscribe(db, current_user, payload.subscription)
    return {"message": "Subscribed successfully"}


@router.post("/unsubscribe-notifications")
async def unsubscribe_notifications(
    current_user: Users = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    await notification_service.unsubscribe(db, current_user)
    return {"message": "Unsubscribed successfully"}
