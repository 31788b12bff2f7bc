from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.schemas.enums import CardStatus, Gender


CARD_ID_MAX_LENGTH = 64


class HolderCreate(BaseModel):
    # bornes alignées sur les colonnes de cards
    name: str = Field(max_length=100)
    surname: str = Field(max_length=100)
    age: int = Field(ge=1, le=120)
    gender: Gender
    email: str = Field(max_length=255)
    phone: str = Field(max_length=50)

    @field_validator("name", "surname", "email", "phone")
    @classmethod
    def _required_text(cls, value: str, info):
        value = (value or "").strip()
        if not value:
            raise ValueError(f"{info.field_name} is required")
        return value


class HolderOut(BaseModel):
    name: str
    surname: str
    age: int
    gender: Gender
    email: Optional[str] = None
    phone: Optional[str] = None

    class Config:
        from_attributes = True


class CardOut(BaseModel):
    id: UUID
    card_id: str

    name: Optional[str] = None
    surname: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    activated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CardStatusOut(BaseModel):
    card_id: str
    status: CardStatus
    holder: Optional[HolderOut] = None
    activation_path: Optional[str] = None


class ScanIn(BaseModel):
    decodedText: str


class CardBatchCreate(BaseModel):
    count: int = Field(ge=1, le=1000)
    prefix: Optional[str] = Field(default=None, max_length=32)


class CardBatchItem(BaseModel):
    card_id: str
    activation_url: str
