import logging
import urllib.parse
from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.card import Card
from app.schemas.card import CARD_ID_MAX_LENGTH, HolderCreate
from app.schemas.enums import CardStatus


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def extract_card_id(decoded_text: str) -> str:
    text = (decoded_text or "").strip()

    # QR imprimé : https://.../activate/SB-0001 -> dernier segment du chemin
    if text.lower().startswith(("http://", "https://")):
        parsed = urllib.parse.urlparse(text)
        parts = [p for p in parsed.path.split("/") if p]
        text = urllib.parse.unquote(parts[-1]) if parts else ""

    if not text:
        raise HTTPException(status_code=400, detail="No card identifier found in scanned code")
    if len(text) > CARD_ID_MAX_LENGTH:
        raise HTTPException(status_code=400, detail="Scanned card identifier is too long")

    return text


def get_card(db: Session, card_id: str):
    return db.query(Card).filter(Card.card_id == card_id).first()


def card_status(card: Card | None) -> CardStatus:
    if card is None:
        return CardStatus.NOT_FOUND
    if card.is_active:
        return CardStatus.ACTIVE
    return CardStatus.PRE_REGISTERED


def lookup_card(db: Session, card_id: str):
    card = get_card(db, card_id)
    return card_status(card), card


def get_active_card(db: Session, card_id: str) -> Card:
    status, card = lookup_card(db, card_id)

    if status is CardStatus.NOT_FOUND:
        raise HTTPException(status_code=404, detail="Card not found")
    if status is CardStatus.PRE_REGISTERED:
        raise HTTPException(status_code=404, detail="Card not active")
    if status is CardStatus.ACTIVE:
        return card

    raise ValueError(f"Unsupported card status: {status}")


def _already_active(card_id: str):
    logger.info("card activation refused: already active", extra={"card_id": card_id})
    return HTTPException(status_code=409, detail="Card already active")


def activate_card(db: Session, card_id: str, holder: HolderCreate) -> Card:
    """
    Upsert keyed on card_id: binds the holder to a pre-registered card, or
    creates the card on the fly. An active card is never overwritten.
    """
    now = _utcnow()
    values = {
        "name": holder.name,
        "surname": holder.surname,
        "age": holder.age,
        "gender": holder.gender.value,
        "email": holder.email,
        "phone": holder.phone,
        "activated_at": now,
        "updated_at": now,
    }

    # 🔐 update conditionnel : ne touche que les cartes encore vides
    updated = (
        db.query(Card)
        .filter(
            Card.card_id == card_id,
            or_(Card.name.is_(None), Card.name == ""),
        )
        .update(values, synchronize_session=False)
    )

    if not updated:
        if get_card(db, card_id) is not None:
            raise _already_active(card_id)

        db.add(Card(card_id=card_id, **values))
        try:
            db.flush()
        except IntegrityError:
            # une autre requête a créé la carte entre-temps
            db.rollback()
            raise _already_active(card_id)

    db.expire_all()
    card = get_card(db, card_id)

    logger.info(
        "card activated",
        extra={"card_id": card_id, "card_created": not updated},
    )
    return card
