# app/schemas/transaction_schema.py
from pydantic import BaseModel, Field, model_validator
from typing import Optional, Literal
from datetime import datetime

from app.schemas.user_schema import User


class PaymentInitiateRequest(BaseModel):
    slots: Optional[int] = Field(default=None, gt=0)
    package_id: Optional[int] = None
    phone_number: str

    @model_validator(mode="after")
    def validate_target(self):
        if self.slots is None and self.package_id is None:
            raise ValueError("Either slots or package_id must be provided.")
        return self


class PaymentInitiateResponse(BaseModel):
    message: str
    checkout_request_id: str
    amount: float
    slots: int


class PaymentStatusResponse(BaseModel):
    status: Literal["pending", "completed", "failed"]
    slots_added: Optional[int] = None
    transaction_id: Optional[int] = None
    message: Optional[str] = None


class Transaction(BaseModel):
    id: int
    user_id: int
    package_id: Optional[int] = None
    amount: float
    slots_purchased: int
    phone_number: str
    payment_reference: str
    status: str
    failure_reason: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdminTransaction(Transaction):
    user: Optional[User] = None
