import logging
import math
import os
from typing import List, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    AuthError,
    InsufficientCreditsError,
    InvalidStateError,
    NotFoundError,
    QuotaExceededError,
    ValidationError,
)
from app.core.uow import atomic
from app.models.order_model import Order, OrderStatus
from app.models.user_model import Users
from app.modules.credits.service import credit_service
from app.modules.quota.service import daily_limit_service
from app.repository.order_repository import order_repository
from app.schemas.order_schema import UploadResponse
from app.utils.file_manager import (
    build_stored_name,
    delete_stored_file,
    display_name,
    resolve_stored_file,
    save_uploaded_file,
)

logger = logging.getLogger(__name__)

SLOT_UPLOAD_REF = "SLOT_UPLOAD"


def _max_upload_bytes() -> int:
    return settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024


def _has_file(upload: Optional[UploadFile]) -> bool:
    return upload is not None and bool(upload.filename)


def parse_score(value, field: str) -> float:
    """Admin-entered percentage, 0 to 100."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required")
    try:
        score = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not math.isfinite(score) or score < 0 or score > 100:
        raise ValidationError(f"{field} must be between 0 and 100")
    return score


def report_file_path(report_path: Optional[str]) -> Optional[str]:
    """Reports are recorded by stored name; documents by full path."""
    if not report_path:
        return None
    return os.path.join(settings.UPLOAD_DIR, os.path.basename(report_path))


async def upload_order(
    db: AsyncSession,
    user: Users,
    file: UploadFile,
    payment_ref: Optional[str] = None,
) -> Tuple[Order, UploadResponse]:
    """
    Accepts a document. The quota and balance are checked up front so a doomed
    upload is never written to disk, then enforced for real inside one
    transaction together with the order insert.
    """
    if not _has_file(file):
        raise ValidationError("Failed to get file")

    quota = await daily_limit_service.get_status(db)
    if quota.remaining <= 0:
        raise QuotaExceededError(
            "Daily system upload limit reached. The daily upload quota has been exhausted. "
            "Please try again tomorrow."
        )
    balance = await credit_service.get_balance(db, user.id)
    if balance.slots_remaining <= 0:
        raise InsufficientCreditsError("You have 0 upload slots. Please purchase slots to continue.")

    stored_name = build_stored_name(user.id, file.filename)
    file_path = await save_uploaded_file(file, settings.UPLOAD_DIR, stored_name, max_bytes=_max_upload_bytes())

    try:
        async with atomic(db):
            quota = await daily_limit_service.admit_upload(db)
            slots_remaining = await credit_service.reserve_slot(db, user.id)
            order = Order(
                user_id=user.id,
                payment_ref=payment_ref or SLOT_UPLOAD_REF,
                status=OrderStatus.PENDING,
                original_filename=os.path.basename(file.filename),
                local_file_path=file_path,
            )
            db.add(order)
            await db.flush()
    except Exception:
        delete_stored_file(file_path)
        raise

    await db.refresh(order)
    logger.info(f"Order {order.id} created by user {user.id} for '{order.original_filename}'")

    response = UploadResponse(
        message="File uploaded successfully",
        order=order,
        daily_remaining=quota.remaining,
        slots_remaining=slots_remaining,
    )
    return order, response


async def list_user_orders(db: AsyncSession, user: Users) -> List[Order]:
    return await order_repository.list_by_user(db, user.id)


async def list_all_orders(db: AsyncSession) -> List[Order]:
    return await order_repository.list_all(db)


async def delete_user_order(db: AsyncSession, user: Users, order_id: int) -> None:
    order = await order_repository.get(db, order_id)
    if not order:
        raise NotFoundError("Order not found")
    if order.user_id != user.id:
        raise AuthError("You can only delete your own orders", status_code=403)

    paths = [
        order.local_file_path,
        report_file_path(order.report1_path),
        report_file_path(order.report2_path),
    ]
    await order_repository.delete(db, order)
    await db.commit()

    for path in paths:
        delete_stored_file(path)
    logger.info(f"Order {order_id} deleted by user {user.id}")


async def start_processing(db: AsyncSession, order_id: int) -> Order:
    order = await order_repository.get(db, order_id)
    if not order:
        raise NotFoundError("Order not found")

    current_status = OrderStatus(order.status).value
    async with atomic(db):
        moved = await order_repository.transition(db, order_id, OrderStatus.PENDING, OrderStatus.PROCESSING)
        if not moved:
            raise InvalidStateError(
                f"Only Pending orders can be started (order {order_id} is {current_status})"
            )

    logger.info(f"Order {order_id} moved to Processing")
    return await order_repository.get_with_user(db, order_id)


async def complete_order(
    db: AsyncSession,
    order_id: int,
    ai_score,
    sim_score,
    report1: Optional[UploadFile] = None,
    report2: Optional[UploadFile] = None,
) -> Order:
    """
    Attaches the admin's results. Everything is validated before any report is
    written, and a report already on the order may stand in for a new upload.
    """
    order = await order_repository.get(db, order_id)
    if not order:
        raise NotFoundError("Order not found")

    ai = parse_score(ai_score, "ai_score")
    sim = parse_score(sim_score, "sim_score")
    if not _has_file(report1) and not order.report1_path:
        raise ValidationError("report1 is required")
    if not _has_file(report2) and not order.report2_path:
        raise ValidationError("report2 is required")

    if order.status != OrderStatus.PROCESSING:
        raise InvalidStateError(
            f"Only orders in Processing can be completed (order {order_id} is {OrderStatus(order.status).value})"
        )

    saved: List[str] = []
    try:
        report_names = []
        for upload, existing in ((report1, order.report1_path), (report2, order.report2_path)):
            if _has_file(upload):
                stored_name = build_stored_name(order.id, upload.filename, prefix="report")
                path = await save_uploaded_file(
                    upload, settings.UPLOAD_DIR, stored_name, max_bytes=_max_upload_bytes()
                )
                saved.append(path)
                report_names.append(os.path.basename(path))
            else:
                report_names.append(existing)

        async with atomic(db):
            done = await order_repository.complete(
                db,
                order_id,
                ai_score=ai,
                sim_score=sim,
                report1_path=report_names[0],
                report2_path=report_names[1],
            )
            if not done:
                raise InvalidStateError(f"Order {order_id} is no longer in Processing")
    except Exception:
        for path in saved:
            delete_stored_file(path)
        raise

    logger.info(f"Order {order_id} completed (AI {ai}%, similarity {sim}%)")
    return await order_repository.get_with_user(db, order_id)


async def resolve_download(db: AsyncSession, user: Users, filename: str) -> Tuple[str, str]:
    """Returns (path on disk, name to present to the browser)."""
    path = resolve_stored_file(settings.UPLOAD_DIR, filename)
    if not path:
        raise NotFoundError("File not found")

    stored_name = os.path.basename(path)
    if not user.is_admin and not await order_repository.user_owns_file(db, user.id, path, stored_name):
        logger.warning(f"Access denied: user {user.id} attempted to download {filename}")
        raise AuthError("Access denied", status_code=403)

    return path, display_name(stored_name)
