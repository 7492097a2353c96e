import enum
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy import func

from .base import Base


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_user_status", "user_id", "status"),
        Index("ix_transactions_created", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    package_id = Column(Integer, ForeignKey("pricing_packages.id", ondelete="SET NULL"), nullable=True)

    amount = Column(Float, nullable=False, default=0)
    slots_purchased = Column(Integer, nullable=False)
    phone_number = Column(String(20), nullable=False)

    # M-Pesa CheckoutRequestID
    payment_reference = Column(String, nullable=False, unique=True, index=True)
    merchant_request_id = Column(String, nullable=True)

    status = Column(String, nullable=False, default=TransactionStatus.PENDING.value)  # pending|completed|failed
    failure_reason = Column(String, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    completed_at = Column(DateTime, nullable=True)

    user = relationship("Users")
    package = relationship("PricingPackage")
