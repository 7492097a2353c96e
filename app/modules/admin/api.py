from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.dependencies import get_db, get_current_admin
from app.modules.admin import service as admin_service
from app.modules.payment.api import notify_payment_received
from app.modules.payment.service import payment_service
from app.schemas import transaction_schema, user_schema

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(get_current_admin)],
)


@router.get("/users", response_model=List[user_schema.AdminUser])
async def list_users(db: AsyncSession = Depends(get_db)):
    return await admin_service.list_users(db)


@router.get("/transactions", response_model=List[transaction_schema.AdminTransaction])
async def list_transactions(db: AsyncSession = Depends(get_db)):
    return await admin_service.list_transactions(db)


@router.post("/transactions/{reference}/verify", response_model=transaction_schema.PaymentStatusResponse)
async def verify_transaction(
    reference: str,
    db: AsyncSession = Depends(get_db),
):
    """
    Re-queries M-Pesa for a transaction the buyer stopped polling, granting the
    slots if it went through.
    """
    response, transaction, completed_now = await payment_service.verify(db, reference)
    if completed_now:
        buyer = await admin_service.get_user(db, transaction.user_id)
        notify_payment_received(buyer, transaction.slots_purchased, transaction.amount)
    return response
