from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_current_user
from app.models.user_model import Users
from app.schemas.transaction_schema import PaymentInitiateRequest, PaymentInitiateResponse, PaymentStatusResponse
from app.tasks.notification_tasks import dispatch_admin_notification
from app.modules.payment.service import payment_service

router = APIRouter(prefix="/payment", tags=["Payment"])


def notify_payment_received(user: Users, slots: int, amount: float):
    buyer = user.name or user.email
    dispatch_admin_notification(
        "Payment Received",
        f"{buyer} bought {slots} slot(s) for KSH {amount:.0f}",
        "/admin/transactions",
    )


@router.post("/initiate", response_model=PaymentInitiateResponse)
async def initiate_payment(
    payload: PaymentInitiateRequest,
    current_user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Sends an M-Pesa STK push to the given phone for the chosen package."""
    return await payment_service.initiate(db, current_user, payload)


@router.get("/status/{checkout_request_id}", response_model=PaymentStatusResponse)
async def check_payment_status(
    checkout_request_id: str,
    current_user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    response, transaction, completed_now = await payment_service.check_status(
        db, current_user, checkout_request_id
    )
    if completed_now:
        notify_payment_received(current_user, transaction.slots_purchased, transaction.amount)
    return response
