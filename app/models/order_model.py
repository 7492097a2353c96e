import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Enum as SQLAlchemyEnum, Index, func
from sqlalchemy.orm import relationship
from app.models.base import Base

class OrderStatus(str, enum.Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    COMPLETED = "Completed"

class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_user_created", "user_id", "created_at"),
        Index("ix_orders_status", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    payment_ref = Column(String, nullable=True)
    status = Column(
        SQLAlchemyEnum(OrderStatus, values_callable=lambda e: [m.value for m in e], name="order_status"),
        nullable=False,
        default=OrderStatus.PENDING,
    )
    original_filename = Column(String, nullable=False)
    # Stored name is namespaced as <owner>_<timestamp>_<name>
    local_file_path = Column(String, nullable=False)

    # Filled in by the admin on completion
    ai_score = Column(Float, nullable=True)
    sim_score = Column(Float, nullable=True)
    report1_path = Column(String, nullable=True)
    report2_path = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("Users", back_populates="orders")
