from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional

class PackageBase(BaseModel):
    name: str
    price: float = Field(..., ge=0)
    currency: str = "KSH"
    slots: int = Field(..., gt=0)
    features: List[str] = []
    unavailable: bool = False
    highlight: bool = False
    offer: Optional[str] = None
    available_slots: Optional[int] = Field(default=None, ge=0)

class PackageCreate(PackageBase):
    pass

class PackageUpdate(BaseModel):
    name: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = None
    slots: Optional[int] = Field(default=None, gt=0)
    features: Optional[List[str]] = None
    unavailable: Optional[bool] = None
    highlight: Optional[bool] = None
    offer: Optional[str] = None
    available_slots: Optional[int] = Field(default=None, ge=0)

class Package(PackageBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
