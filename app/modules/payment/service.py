import logging
import re
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, PaymentProviderError, ValidationError
from app.core.uow import atomic
from app.models.transaction_model import Transaction, TransactionStatus
from app.models.user_model import Users
from app.modules.credits.service import credit_service
from app.modules.payment.mpesa_client import MpesaClient, mpesa_client
from app.repository.package_repository import package_repository
from app.repository.transaction_repository import transaction_repository
from app.schemas.transaction_schema import (
    PaymentInitiateRequest,
    PaymentInitiateResponse,
    PaymentStatusResponse,
)

logger = logging.getLogger(__name__)

PHONE_RE = re.compile(r"^254\d{9}$")

# Used when no package offers the requested slot count
PRICING_TIERS = {1: 100.0, 3: 250.0, 5: 480.0}


class PaymentService:
    def __init__(self, client: Optional[MpesaClient] = None):
        self.client = client or mpesa_client

    async def _resolve_purchase(
        self, db: AsyncSession, payload: PaymentInitiateRequest
    ) -> Tuple[float, int, Optional[int]]:
        """Returns (amount, slots, package_id) for the requested purchase."""
        if payload.package_id is not None:
            package = await package_repository.get(db, payload.package_id)
            if not package:
                raise NotFoundError("Package not found")
        else:
            package = await package_repository.get_available_by_slots(db, payload.slots)
            if package is None:
                if payload.slots not in PRICING_TIERS:
                    raise ValidationError("Invalid slots. Choose 1, 3, or 5")
                return PRICING_TIERS[payload.slots], payload.slots, None

        if package.unavailable:
            raise ValidationError("This package is currently unavailable")
        if package.available_slots is not None and package.available_slots <= 0:
            raise ValidationError("This package is sold out")
        return package.price, package.slots, package.id

    async def initiate(self, db: AsyncSession, user: Users, payload: PaymentInitiateRequest) -> PaymentInitiateResponse:
        phone_number = payload.phone_number.strip()
        if not PHONE_RE.match(phone_number):
            raise ValidationError("Invalid phone number. Format: 254XXXXXXXXX")

        amount, slots, package_id = await self._resolve_purchase(db, payload)

        data = await self.client.stk_push(phone_number, int(round(amount)), f"Buy {slots} Slots")
        checkout_request_id = data["CheckoutRequestID"]

        transaction = Transaction(
            user_id=user.id,
            package_id=package_id,
            amount=amount,
            slots_purchased=slots,
            phone_number=phone_number,
            payment_reference=checkout_request_id,
            merchant_request_id=data.get("MerchantRequestID"),
            status=TransactionStatus.PENDING.value,
        )
        db.add(transaction)
        await db.commit()
        logger.info(f"STK push {checkout_request_id} sent for user {user.id}: {slots} slots, {amount} KSH")

        return PaymentInitiateResponse(
            message="Enter M-Pesa PIN",
            checkout_request_id=checkout_request_id,
            amount=amount,
            slots=slots,
        )

    async def complete_transaction(self, db: AsyncSession, transaction: Transaction) -> bool:
        """
        Marks the transaction completed and grants its slots in one database
        transaction. Only the caller whose status flip succeeds grants anything;
        returns whether that was this caller.
        """
        transaction_id = transaction.id
        user_id = transaction.user_id
        slots = transaction.slots_purchased
        package_id = transaction.package_id

        async with atomic(db):
            if not await transaction_repository.mark_completed(db, transaction_id):
                return False
            await credit_service.grant_slots(db, user_id, slots)
            if package_id is not None:
                await package_repository.consume_inventory(db, package_id)

        logger.info(f"Payment {transaction.payment_reference} completed: {slots} slots granted to user {user_id}")
        return True

    @staticmethod
    def _terminal_response(transaction: Transaction) -> PaymentStatusResponse:
        if transaction.status == TransactionStatus.COMPLETED.value:
            return PaymentStatusResponse(
                status="completed",
                slots_added=transaction.slots_purchased,
                transaction_id=transaction.id,
            )
        return PaymentStatusResponse(
            status="failed",
            transaction_id=transaction.id,
            message=transaction.failure_reason or "Transaction failed",
        )

    async def _refresh(self, db: AsyncSession, transaction: Transaction) -> Tuple[PaymentStatusResponse, bool]:
        """
        Brings a transaction up to date with the provider. Returns the status to
        report and whether this call completed the payment.
        """
        if transaction.status != TransactionStatus.PENDING.value:
            return self._terminal_response(transaction), False

        reference = transaction.payment_reference
        try:
            result = await self.client.query_stk_status(reference)
        except PaymentProviderError as e:
            logger.warning(f"Keeping {reference} pending after provider error: {e.detail}")
            return PaymentStatusResponse(status="pending", transaction_id=transaction.id), False

        if result.status == "pending":
            return PaymentStatusResponse(status="pending", transaction_id=transaction.id), False

        if not result.final:
            return PaymentStatusResponse(status="failed", transaction_id=transaction.id, message=result.message), False

        if result.status == "completed":
            completed_now = await self.complete_transaction(db, transaction)
        else:
            completed_now = False
            async with atomic(db):
                await transaction_repository.mark_failed(db, transaction.id, result.message)
            logger.info(f"Payment {reference} failed: {result.message}")

        # Another poller may have resolved it first
        await db.refresh(transaction)
        return self._terminal_response(transaction), completed_now

    async def check_status(
        self, db: AsyncSession, user: Users, checkout_request_id: str
    ) -> Tuple[PaymentStatusResponse, Optional[Transaction], bool]:
        transaction = await transaction_repository.get_by_reference(db, checkout_request_id)
        if not transaction or transaction.user_id != user.id:
            raise NotFoundError("Transaction not found")

        response, completed_now = await self._refresh(db, transaction)
        return response, transaction, completed_now

    async def verify(
        self, db: AsyncSession, reference: str
    ) -> Tuple[PaymentStatusResponse, Optional[Transaction], bool]:
        """Admin re-check of any user's transaction against the provider."""
        transaction = await transaction_repository.get_by_reference(db, reference)
        if not transaction:
            raise NotFoundError("Transaction not found")

        response, completed_now = await self._refresh(db, transaction)
        logger.info(f"Admin verification of {reference}: {response.status}")
        return response, transaction, completed_now


payment_service = PaymentService()
