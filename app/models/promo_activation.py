import uuid

from sqlalchemy import Column, ForeignKey, Index, String, TIMESTAMP, UniqueConstraint, Uuid
from sqlalchemy.sql import func

from app.db import Base


class PromoActivation(Base):
    __tablename__ = "promo_activations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    card_id = Column(String(64), ForeignKey("cards.card_id"), nullable=False)
    promotion_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("promotions.id", ondelete="SET NULL"),
        nullable=True,
    )

    activated_by = Column(String(10), nullable=False)  # user / shop
    shop_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("shops.id", ondelete="SET NULL"),
        nullable=True,
    )

    # "user" pour l'activation client, "shop" pour une validation Single,
    # NULL pour les validations Unlimited (jamais en collision)
    exclusive_slot = Column(String(10), nullable=True)

    activated_at = Column(TIMESTAMP, server_default=func.now())

    __table_args__ = (
        UniqueConstraint(
            "card_id",
            "promotion_id",
            "exclusive_slot",
            name="uq_promo_activations_card_promotion_slot",
        ),
        Index("ix_promo_activations_promotion_id", "promotion_id", "activated_at"),
    )
