from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_current_user, get_current_admin
from app.models.user_model import Users
from app.schemas import order_schema
from app.modules.orders import service as order_service
from app.tasks.notification_tasks import dispatch_admin_notification

router = APIRouter(tags=["Orders"])

admin_router = APIRouter(
    prefix="/admin",
    tags=["Admin Orders"],
    dependencies=[Depends(get_current_admin)],
)


@router.post("/upload", response_model=order_schema.UploadResponse)
async def upload_document(
    file: UploadFile = File(...),
    payment_ref: Optional[str] = Form(default=None),
    current_user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Spends one of the caller's slots and one unit of today's system quota,
    creating a Pending order. Admins are notified through the task queue.
    """
    order, response = await order_service.upload_order(db, current_user, file, payment_ref)

    uploader = current_user.name or current_user.email
    dispatch_admin_notification(
        "New Order",
        f"{uploader} uploaded {order.original_filename}",
        "/admin",
    )
    return response


@router.get("/user/orders", response_model=List[order_schema.Order])
async def list_my_orders(
    current_user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await order_service.list_user_orders(db, current_user)


@router.delete("/user/orders/{order_id}")
async def delete_my_order(
    order_id: int,
    current_user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await order_service.delete_user_order(db, current_user, order_id)
    return {"message": "Order deleted successfully"}


@router.get("/download/{filename}")
async def download_file(
    filename: str,
    current_user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    path, original_name = await order_service.resolve_download(db, current_user, filename)
    return FileResponse(path, filename=original_name)


@admin_router.get("/orders", response_model=List[order_schema.AdminOrder])
async def list_all_orders(db: AsyncSession = Depends(get_db)):
    return await order_service.list_all_orders(db)


@admin_router.post("/orders/{order_id}/start", response_model=order_schema.OrderActionResponse)
async def start_processing(order_id: int, db: AsyncSession = Depends(get_db)):
    order = await order_service.start_processing(db, order_id)
    return order_schema.OrderActionResponse(message="Order is now processing", order=order)


@admin_router.post("/complete/{order_id}", response_model=order_schema.OrderActionResponse)
async def complete_order(
    order_id: int,
    ai_score: Optional[str] = Form(default=None),
    sim_score: Optional[str] = Form(default=None),
    report1: Optional[UploadFile] = File(default=None),
    report2: Optional[UploadFile] = File(default=None),
    db: AsyncSession = Depends(get_db),
):
    order = await order_service.complete_order(db, order_id, ai_score, sim_score, report1, report2)
    return order_schema.OrderActionResponse(message="Order completed", order=order)
