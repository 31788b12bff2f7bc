import hashlib
import hmac
import logging

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.shop import Shop
from app.settings import SHOP_PIN_SECRET


logger = logging.getLogger(__name__)


def pin_digest(pin: str) -> str:
    # HMAC déterministe : permet la recherche par PIN et l'unicité en base
    return hmac.new(
        SHOP_PIN_SECRET.encode("utf-8"),
        (pin or "").strip().encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def authenticate_shop(db: Session, pin: str) -> Shop | None:
    if not pin or not pin.strip():
        return None

    digest = pin_digest(pin)
    shop = db.query(Shop).filter(Shop.pin_digest == digest).first()

    if not shop or not hmac.compare_digest(shop.pin_digest, digest):
        logger.info("shop login failed")
        return None

    return shop


def _pin_in_use(db: Session, digest: str, exclude_id=None) -> bool:
    q = db.query(Shop.id).filter(Shop.pin_digest == digest)
    if exclude_id is not None:
        q = q.filter(Shop.id != exclude_id)
    return q.first() is not None


def _flush_or_conflict(db: Session):
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="PIN already used by another shop")


def create_shop(db: Session, *, name: str, pin: str) -> Shop:
    digest = pin_digest(pin)
    if _pin_in_use(db, digest):
        raise HTTPException(status_code=409, detail="PIN already used by another shop")

    shop = Shop(name=name.strip(), pin_digest=digest)
    db.add(shop)
    _flush_or_conflict(db)

    logger.info("shop created", extra={"shop_id": str(shop.id)})
    return shop


def update_shop(db: Session, shop: Shop, *, name: str | None = None, pin: str | None = None) -> Shop:
    if pin is not None:
        digest = pin_digest(pin)
        if _pin_in_use(db, digest, exclude_id=shop.id):
            raise HTTPException(status_code=409, detail="PIN already used by another shop")
        shop.pin_digest = digest

    if name is not None:
        shop.name = name.strip()

    _flush_or_conflict(db)
    return shop
