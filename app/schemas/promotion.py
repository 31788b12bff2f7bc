from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.enums import PromotionStatus, TargetGender, TargetMode, UsageLimit


class PromotionCreate(BaseModel):
    title: str = Field(min_length=1, max_length=150)
    description: str = Field(min_length=1, max_length=500)

    active: bool = True
    usage_limit: UsageLimit = UsageLimit.UNLIMITED

    target_gender: TargetGender = TargetGender.ALL
    target_age_min: int = Field(default=0, ge=0)
    target_age_max: int = Field(default=99, ge=0)

    target_mode: TargetMode = TargetMode.ALL
    target_users: list[str] = Field(default_factory=list)

    requires_activation: bool = False

    shops: list[str] = Field(default_factory=list)


class PromotionUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=150)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)

    active: Optional[bool] = None
    usage_limit: Optional[UsageLimit] = None

    target_gender: Optional[TargetGender] = None
    target_age_min: Optional[int] = Field(default=None, ge=0)
    target_age_max: Optional[int] = Field(default=None, ge=0)

    target_mode: Optional[TargetMode] = None
    target_users: Optional[list[str]] = None

    requires_activation: Optional[bool] = None

    shops: Optional[list[str]] = None


class PromotionOut(BaseModel):
    id: UUID
    title: str
    description: str

    active: bool
    usage_limit: UsageLimit

    target_gender: TargetGender
    target_age_min: int
    target_age_max: int

    target_mode: TargetMode
    target_users: list[str] = Field(default_factory=list)

    requires_activation: bool

    shops: list[str] = Field(default_factory=list)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CardPromotionOut(BaseModel):
    id: UUID
    title: str
    description: str
    usage_limit: UsageLimit
    requires_activation: bool

    status: PromotionStatus
    can_validate: bool = False


class CardPromotionsOut(BaseModel):
    card_id: str
    pending: list[CardPromotionOut] = Field(default_factory=list)
    available: list[CardPromotionOut] = Field(default_factory=list)
