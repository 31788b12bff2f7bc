import uuid
from sqlalchemy import Column, String, TIMESTAMP, Uuid
from sqlalchemy.sql import func
from app.db import Base


class Shop(Base):
    __tablename__ = "shops"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name = Column(String(100), nullable=False)

    # HMAC du PIN, jamais le PIN en clair
    pin_digest = Column(String(64), nullable=False, unique=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
