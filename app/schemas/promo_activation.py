from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel

from app.schemas.enums import Actor, PromotionStatus


class PromoActivationOut(BaseModel):
    id: UUID
    card_id: str
    promotion_id: Optional[UUID] = None

    activated_by: Actor
    shop_id: Optional[UUID] = None

    activated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ActivationResult(BaseModel):
    activation: PromoActivationOut
    status: PromotionStatus
