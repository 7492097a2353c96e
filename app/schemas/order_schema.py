from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from app.models.order_model import OrderStatus
from app.schemas.user_schema import User


class Order(BaseModel):
    id: int
    user_id: int
    payment_ref: Optional[str] = None
    status: OrderStatus
    original_filename: str
    ai_score: Optional[float] = None
    sim_score: Optional[float] = None
    report1_path: Optional[str] = None
    report2_path: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdminOrder(Order):
    # Admins see the stored document name so they can download it
    local_file_path: str
    user: Optional[User] = None


class UploadResponse(BaseModel):
    message: str
    order: Order
    daily_remaining: int
    slots_remaining: int


class OrderActionResponse(BaseModel):
    message: str
    order: AdminOrder
