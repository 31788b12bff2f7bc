import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.shop import Shop
from app.schemas.shop import ShopCreate, ShopLogin, ShopOut, ShopUpdate
from app.services.promotion_service import detach_shop
from app.services.shop_service import authenticate_shop, create_shop, update_shop


router = APIRouter(prefix="/shops", tags=["shops"])


def get_shop_or_404(db: Session, shop_id: str) -> Shop:
    try:
        sid = uuid.UUID(shop_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Shop not found")

    shop = db.query(Shop).filter(Shop.id == sid).first()
    if not shop:
        raise HTTPException(status_code=404, detail="Shop not found")
    return shop


@router.post("/login", response_model=ShopOut)
def login(payload: ShopLogin, db: Session = Depends(get_db)):
    shop = authenticate_shop(db, payload.pin)
    if not shop:
        raise HTTPException(status_code=401, detail="Invalid PIN")
    return shop


@router.get("", response_model=list[ShopOut])
def list_shops(db: Session = Depends(get_db)):
    return db.query(Shop).order_by(Shop.created_at.desc(), Shop.id.desc()).all()


@router.post("", response_model=ShopOut)
def create(payload: ShopCreate, db: Session = Depends(get_db)):
    shop = create_shop(db, name=payload.name, pin=payload.pin)
    db.commit()
    db.refresh(shop)
    return shop


@router.get("/{shop_id}", response_model=ShopOut)
def get_shop(shop_id: str, db: Session = Depends(get_db)):
    return get_shop_or_404(db, shop_id)


@router.patch("/{shop_id}", response_model=ShopOut)
def update(shop_id: str, payload: ShopUpdate, db: Session = Depends(get_db)):
    shop = get_shop_or_404(db, shop_id)

    update_shop(db, shop, name=payload.name, pin=payload.pin)
    db.commit()
    db.refresh(shop)
    return shop


@router.delete("/{shop_id}")
def delete_shop(shop_id: str, db: Session = Depends(get_db)):
    shop = get_shop_or_404(db, shop_id)

    # les promotions ne doivent pas garder un id de boutique supprimée
    detach_shop(db, shop)
    db.delete(shop)
    db.commit()
    return {"deleted": True}
