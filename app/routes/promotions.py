import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.promotion import Promotion
from app.schemas.promotion import PromotionCreate, PromotionOut, PromotionUpdate
from app.services.promotion_service import create_promotion, update_promotion


router = APIRouter(prefix="/promotions", tags=["promotions"])


def _get_promotion_or_404(db: Session, promotion_id: str) -> Promotion:
    try:
        pid = uuid.UUID(promotion_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Promotion not found")

    promotion = db.query(Promotion).filter(Promotion.id == pid).first()
    if not promotion:
        raise HTTPException(status_code=404, detail="Promotion not found")
    return promotion


@router.get("", response_model=list[PromotionOut])
def list_promotions(
    active: bool | None = None,
    shop_id: str | None = None,
    db: Session = Depends(get_db),
):
    q = db.query(Promotion)
    if active is not None:
        q = q.filter(Promotion.active.is_(active))
    items = q.order_by(Promotion.created_at.desc(), Promotion.id.desc()).all()

    if shop_id:
        try:
            key = str(uuid.UUID(shop_id))
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid shop id: {shop_id}")
        items = [p for p in items if key in (p.shops or [])]
    return items


@router.post("", response_model=PromotionOut)
def create(payload: PromotionCreate, db: Session = Depends(get_db)):
    promotion = create_promotion(db, payload)
    db.commit()
    db.refresh(promotion)
    return promotion


@router.get("/{promotion_id}", response_model=PromotionOut)
def get_promotion(promotion_id: str, db: Session = Depends(get_db)):
    return _get_promotion_or_404(db, promotion_id)


@router.patch("/{promotion_id}", response_model=PromotionOut)
def update(promotion_id: str, payload: PromotionUpdate, db: Session = Depends(get_db)):
    promotion = _get_promotion_or_404(db, promotion_id)

    update_promotion(db, promotion, payload)
    db.commit()
    db.refresh(promotion)
    return promotion


@router.delete("/{promotion_id}")
def delete_promotion(promotion_id: str, db: Session = Depends(get_db)):
    promotion = _get_promotion_or_404(db, promotion_id)

    db.delete(promotion)
    db.commit()
    return {"deleted": True}
