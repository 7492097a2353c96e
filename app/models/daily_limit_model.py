from sqlalchemy import Column, Integer, String, DateTime, func

from .base import Base


class DailyLimit(Base):
    """System-wide upload counter, one row per calendar day."""
    __tablename__ = "daily_limits"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(String(10), unique=True, nullable=False, index=True)  # YYYY-MM-DD
    max_uploads = Column(Integer, nullable=False, default=0)
    current_uploads = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
