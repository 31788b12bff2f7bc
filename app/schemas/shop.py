from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel, Field


PIN_PATTERN = r"^[0-9]{4,6}$"


class ShopCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    pin: str = Field(pattern=PIN_PATTERN)


class ShopUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    pin: Optional[str] = Field(default=None, pattern=PIN_PATTERN)


class ShopOut(BaseModel):
    id: UUID
    name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ShopLogin(BaseModel):
    pin: str
