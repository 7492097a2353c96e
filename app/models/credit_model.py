from sqlalchemy import Column, Integer, DateTime, ForeignKey, CheckConstraint, func
from sqlalchemy.orm import relationship

from .base import Base


class UserCredits(Base):
    __tablename__ = "user_credits"
    __table_args__ = (
        CheckConstraint("slots_remaining >= 0", name="ck_user_credits_slots_non_negative"),
        CheckConstraint("slots_remaining <= total_purchased", name="ck_user_credits_slots_le_purchased"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    slots_remaining = Column(Integer, nullable=False, default=0)
    total_purchased = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("Users", back_populates="credits")
