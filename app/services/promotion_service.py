import uuid

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models.promotion import Promotion
from app.models.shop import Shop
from app.schemas.enums import TargetMode


def _normalize_shop_ids(db: Session, shop_ids) -> list[str]:
    ids = []
    for raw in shop_ids or []:
        try:
            sid = uuid.UUID(str(raw))
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid shop id: {raw}")
        if sid not in ids:
            ids.append(sid)

    if not ids:
        return []

    known = {row[0] for row in db.query(Shop.id).filter(Shop.id.in_(ids)).all()}
    missing = [str(sid) for sid in ids if sid not in known]
    if missing:
        raise HTTPException(status_code=400, detail=f"Unknown shops: {', '.join(missing)}")

    return [str(sid) for sid in ids]


def _normalize_card_ids(card_ids) -> list[str]:
    out = []
    for raw in card_ids or []:
        value = (raw or "").strip()
        if value and value not in out:
            out.append(value)
    return out


def validate_promotion_data(db: Session, data: dict, *, check_shops: bool = True) -> dict:
    """
    Checks a full set of promotion fields (create payload, or the merge of
    the stored promotion with a PATCH payload) and normalizes list fields.
    Shops are only re-checked when the caller sets them.
    """
    if check_shops:
        data["shops"] = _normalize_shop_ids(db, data.get("shops"))
        if not data["shops"]:
            raise HTTPException(status_code=400, detail="A promotion must be attached to at least one shop")

    mode = TargetMode(data.get("target_mode") or TargetMode.ALL)
    data["target_users"] = _normalize_card_ids(data.get("target_users"))

    if mode is TargetMode.PERSONAM:
        if not data["target_users"]:
            raise HTTPException(status_code=400, detail="A personam promotion needs at least one target user")
    elif mode is not TargetMode.ALL:
        raise ValueError(f"Unsupported target_mode: {mode}")

    if int(data.get("target_age_min") or 0) > int(data.get("target_age_max") or 0):
        raise HTTPException(status_code=400, detail="target_age_min must be <= target_age_max")

    return data


def _plain(value):
    # enums pydantic -> valeurs stockées en base
    return getattr(value, "value", value)


def create_promotion(db: Session, payload) -> Promotion:
    data = {k: _plain(v) for k, v in payload.model_dump().items()}
    data = validate_promotion_data(db, data)

    promotion = Promotion(**data)
    db.add(promotion)
    db.flush()
    return promotion


def update_promotion(db: Session, promotion: Promotion, payload) -> Promotion:
    changes = {k: _plain(v) for k, v in payload.model_dump(exclude_unset=True).items()}

    nulls = sorted(k for k, v in changes.items() if v is None)
    if nulls:
        raise HTTPException(status_code=400, detail=f"Fields cannot be null: {', '.join(nulls)}")

    merged = {
        "shops": promotion.shops,
        "target_mode": promotion.target_mode,
        "target_users": promotion.target_users,
        "target_age_min": promotion.target_age_min,
        "target_age_max": promotion.target_age_max,
    }
    merged.update({k: v for k, v in changes.items() if k in merged})
    merged = validate_promotion_data(db, merged, check_shops="shops" in changes)

    for k, v in changes.items():
        setattr(promotion, k, merged.get(k, v))

    db.flush()
    return promotion


def detach_shop(db: Session, shop: Shop) -> int:
    """Removes a deleted shop from every promotion's shop list."""
    shop_key = str(shop.id)

    detached = 0
    for promotion in db.query(Promotion).all():
        shops = [str(s) for s in (promotion.shops or [])]
        if shop_key in shops:
            # nouvelle liste : la colonne JSON ne suit pas les mutations en place
            promotion.shops = [s for s in shops if s != shop_key]
            detached += 1

    db.flush()
    return detached
