import uuid
from sqlalchemy import Column, String, Integer, TIMESTAMP, Uuid
from sqlalchemy.sql import func
from app.db import Base


class Card(Base):
    __tablename__ = "cards"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # identifiant imprimé sur la carte (ex: SB-0001), immuable
    card_id = Column(String(64), nullable=False, unique=True)

    # holder : vide tant que la carte n'est pas activée
    name = Column(String(100))
    surname = Column(String(100))
    age = Column(Integer)
    gender = Column(String(10))      # Male / Female / Other
    email = Column(String(255))
    phone = Column(String(50))

    activated_at = Column(TIMESTAMP, nullable=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    @property
    def is_active(self) -> bool:
        return bool((self.name or "").strip()) and bool((self.surname or "").strip())
