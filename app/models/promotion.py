import uuid
from sqlalchemy import Column, String, Integer, Boolean, TIMESTAMP, JSON, Uuid
from sqlalchemy.sql import func
from app.db import Base


class Promotion(Base):
    __tablename__ = "promotions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    title = Column(String(150), nullable=False)
    description = Column(String(500), nullable=False)

    active = Column(Boolean, nullable=False, default=True)

    usage_limit = Column(String(20), nullable=False, default="Unlimited")
    # Unlimited | Single (une seule validation par carte)

    target_gender = Column(String(10), nullable=False, default="All")
    target_age_min = Column(Integer, nullable=False, default=0)
    target_age_max = Column(Integer, nullable=False, default=99)

    target_mode = Column(String(20), nullable=False, default="All")
    # All | Personam (liste explicite de cartes dans target_users)
    target_users = Column(JSON, default=list)

    requires_activation = Column(Boolean, nullable=False, default=False)

    # ids des shops où la promotion est valable; vide = valable nulle part
    shops = Column(JSON, default=list)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())
