from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.deps.shop import get_active_shop
from app.models.shop import Shop
from app.routes.cards import CardIdPath, card_status_payload, promotion_view_payload
from app.schemas.card import CardStatusOut, ScanIn
from app.schemas.enums import CardStatus
from app.schemas.promo_activation import ActivationResult, PromoActivationOut
from app.services.activation_service import current_status, list_card_promotions, split_pending, validate_by_shop
from app.services.card_service import extract_card_id, lookup_card


router = APIRouter(prefix="/shop", tags=["shop"])


@router.get("/me")
def read_current_shop(shop: Shop = Depends(get_active_shop)):
    return {"id": str(shop.id), "name": shop.name}


@router.post("/scan", response_model=CardStatusOut)
def scan_card(
    payload: ScanIn,
    shop: Shop = Depends(get_active_shop),
    db: Session = Depends(get_db),
):
    card_id = extract_card_id(payload.decodedText)
    status, card = lookup_card(db, card_id)
    return card_status_payload(card_id, status, card)


@router.get("/verify/{card_id}")
def verify_card(
    card_id: CardIdPath,
    shop: Shop = Depends(get_active_shop),
    db: Session = Depends(get_db),
):
    status, card = lookup_card(db, card_id)
    payload = card_status_payload(card_id, status, card)
    payload["shop"] = {"id": str(shop.id), "name": shop.name}

    if status is not CardStatus.ACTIVE:
        # carte inconnue ou vide : pas une erreur, invitation à activer
        payload["pending"] = []
        payload["available"] = []
        return payload

    pending, available = split_pending(list_card_promotions(db, card, shop_id=shop.id))
    payload["pending"] = [promotion_view_payload(v) for v in pending]
    payload["available"] = [promotion_view_payload(v) for v in available]
    return payload


@router.post("/verify/{card_id}/promotions/{promotion_id}/validate", response_model=ActivationResult)
def validate_promotion(
    card_id: CardIdPath,
    promotion_id: str,
    shop: Shop = Depends(get_active_shop),
    db: Session = Depends(get_db),
):
    record = validate_by_shop(db, card_id, promotion_id, shop.id)
    db.commit()
    db.refresh(record)

    return {
        "activation": PromoActivationOut.model_validate(record),
        "status": current_status(db, card_id, promotion_id, shop_id=shop.id),
    }
