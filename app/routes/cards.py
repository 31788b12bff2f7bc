from typing import Annotated

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas.card import CARD_ID_MAX_LENGTH, CardOut, CardStatusOut, HolderCreate, HolderOut
from app.schemas.enums import CardStatus
from app.schemas.promo_activation import ActivationResult, PromoActivationOut
from app.schemas.promotion import CardPromotionOut, CardPromotionsOut
from app.services.activation_service import (
    activate_by_user,
    current_status,
    list_card_promotions,
    split_pending,
)
from app.services.card_service import activate_card, get_active_card, lookup_card


router = APIRouter(prefix="/cards", tags=["cards"])

CardIdPath = Annotated[str, Path(max_length=CARD_ID_MAX_LENGTH)]


def card_status_payload(card_id: str, status: CardStatus, card) -> dict:
    return {
        "card_id": card_id,
        "status": status,
        "holder": HolderOut.model_validate(card) if status is CardStatus.ACTIVE else None,
        "activation_path": (None if status is CardStatus.ACTIVE else f"/cards/{card_id}/activate"),
    }


def promotion_view_payload(view) -> CardPromotionOut:
    p = view.promotion
    return CardPromotionOut(
        id=p.id,
        title=p.title,
        description=p.description,
        usage_limit=p.usage_limit,
        requires_activation=p.requires_activation,
        status=view.status,
        can_validate=view.can_validate,
    )


@router.get("/{card_id}", response_model=CardStatusOut)
def get_card_status(card_id: CardIdPath, db: Session = Depends(get_db)):
    status, card = lookup_card(db, card_id)
    return card_status_payload(card_id, status, card)


@router.post("/{card_id}/activate", response_model=CardOut)
def activate(card_id: CardIdPath, payload: HolderCreate, db: Session = Depends(get_db)):
    card = activate_card(db, card_id, payload)
    db.commit()
    db.refresh(card)
    return card


@router.get("/{card_id}/promotions", response_model=CardPromotionsOut)
def list_promotions(card_id: CardIdPath, db: Session = Depends(get_db)):
    card = get_active_card(db, card_id)

    pending, available = split_pending(list_card_promotions(db, card))
    return {
        "card_id": card_id,
        "pending": [promotion_view_payload(v) for v in pending],
        "available": [promotion_view_payload(v) for v in available],
    }


@router.post("/{card_id}/promotions/{promotion_id}/activate", response_model=ActivationResult)
def activate_promotion(card_id: CardIdPath, promotion_id: str, db: Session = Depends(get_db)):
    record = activate_by_user(db, card_id, promotion_id)
    db.commit()
    db.refresh(record)

    # statut relu depuis la base, jamais supposé
    return {
        "activation": PromoActivationOut.model_validate(record),
        "status": current_status(db, card_id, promotion_id),
    }
