from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    func,
)
from sqlalchemy.orm import relationship
from app.models.base import Base
from sqlalchemy import Boolean


class Users(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    # Google-only accounts have no password
    password = Column(String(255), nullable=True)
    is_admin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    credits = relationship("UserCredits", back_populates="user", uselist=False, lazy="selectin")
    orders = relationship("Order", back_populates="user", cascade="all, delete-orphan")

    @property
    def name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
