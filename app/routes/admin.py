from fastapi import APIRouter, Depends
from sqlalchemy import and_
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.card import Card
from app.models.shop import Shop
from app.routes.shops import get_shop_or_404
from app.schemas.card import CardBatchCreate, CardBatchItem
from app.services.card_batch_service import preregister_cards
from app.services.shop_stats_service import compute_shop_stats


router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/shops/{shop_id}/stats")
def read_shop_stats(shop_id: str, db: Session = Depends(get_db)):
    shop = get_shop_or_404(db, shop_id)
    return compute_shop_stats(db, shop)


@router.post("/cards/batch", response_model=list[CardBatchItem])
def create_card_batch(payload: CardBatchCreate, db: Session = Depends(get_db)):
    items = preregister_cards(db, payload.count, payload.prefix)
    db.commit()
    return items


@router.get("/ui-options/shops")
def list_ui_options_shops(db: Session = Depends(get_db)):
    items = db.query(Shop).order_by(Shop.name.asc()).all()
    return {
        "items": [
            {
                "id": str(s.id),
                "name": s.name,
            }
            for s in items
        ],
    }


@router.get("/ui-options/cards")
def list_ui_options_cards(db: Session = Depends(get_db)):
    # cartes activées uniquement : cibles possibles d'une promotion Personam
    items = (
        db.query(Card)
        .filter(and_(Card.name.isnot(None), Card.name != ""))
        .order_by(Card.card_id.asc())
        .all()
    )
    return {
        "items": [
            {
                "cardId": c.card_id,
                "name": c.name,
                "surname": c.surname,
            }
            for c in items
        ],
    }
