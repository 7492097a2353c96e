from sqlalchemy import Column, Integer, String, Float, Boolean, JSON, DateTime, Index, func

from .base import Base


class PricingPackage(Base):
    __tablename__ = "pricing_packages"
    __table_args__ = (
        Index("ix_pricing_packages_price", "price"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    currency = Column(String(8), nullable=False, default="KSH")
    slots = Column(Integer, nullable=False)
    features = Column(JSON, nullable=False, default=list)
    unavailable = Column(Boolean, nullable=False, default=False)
    highlight = Column(Boolean, nullable=False, default=False)
    offer = Column(String, nullable=True)  # e.g. POPULAR
    # Purchasable inventory, None means untracked
    available_slots = Column(Integer, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
