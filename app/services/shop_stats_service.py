from sqlalchemy.orm import Session

from app.models.card import Card
from app.models.promo_activation import PromoActivation
from app.models.promotion import Promotion
from app.models.shop import Shop
from app.schemas.enums import Actor


RECENT_LIMIT = 10


def _display_name(card_id: str, names: dict) -> str:
    holder = names.get(card_id)
    if holder and (holder[0] or "").strip():
        return f"{holder[0]} {holder[1] or ''}".strip()
    return card_id


def _recent_entries(records, promotions_by_id: dict, names: dict) -> list[dict]:
    out = []
    for r in records[:RECENT_LIMIT]:
        promotion = promotions_by_id.get(r.promotion_id)
        out.append(
            {
                "id": str(r.id),
                "cardId": r.card_id,
                "userName": _display_name(r.card_id, names),
                "promoTitle": promotion.title if promotion else "Unknown promotion",
                "date": r.activated_at,
            }
        )
    return out


def compute_shop_stats(db: Session, shop: Shop) -> dict:
    shop_key = str(shop.id)

    # filtrage des tableaux JSON côté Python (portable entre backends)
    promotions = [
        p for p in db.query(Promotion).order_by(Promotion.created_at.desc(), Promotion.id.desc()).all()
        if shop_key in [str(s) for s in (p.shops or [])]
    ]
    promotions_by_id = {p.id: p for p in promotions}

    base = {
        "shop": {"id": shop_key, "name": shop.name},
        "totalValidations": 0,
        "totalUserActivations": 0,
        "hasActivationPromos": any(p.requires_activation for p in promotions),
        "promotions": [],
        "recentValidations": [],
        "recentActivations": [],
    }
    if not promotions:
        return base

    records = (
        db.query(PromoActivation)
        .filter(PromoActivation.promotion_id.in_(list(promotions_by_id)))
        .order_by(PromoActivation.activated_at.desc(), PromoActivation.id.desc())
        .all()
    )

    validations = [
        r for r in records
        if r.activated_by == Actor.SHOP.value and r.shop_id == shop.id
    ]
    user_activations = [r for r in records if r.activated_by == Actor.USER.value]

    card_ids = {r.card_id for r in validations + user_activations}
    names = {}
    if card_ids:
        rows = (
            db.query(Card.card_id, Card.name, Card.surname)
            .filter(Card.card_id.in_(card_ids))
            .all()
        )
        names = {row[0]: (row[1], row[2]) for row in rows}

    per_promotion = []
    for p in promotions:
        per_promotion.append(
            {
                "id": str(p.id),
                "title": p.title,
                "usageLimit": p.usage_limit,
                "requiresActivation": p.requires_activation,
                "active": p.active,
                "totalValidations": sum(1 for r in validations if r.promotion_id == p.id),
                "userActivations": sum(1 for r in user_activations if r.promotion_id == p.id),
            }
        )
    per_promotion.sort(key=lambda s: s["totalValidations"], reverse=True)

    base.update(
        {
            "totalValidations": len(validations),
            "totalUserActivations": len(user_activations),
            "promotions": per_promotion,
            "recentValidations": _recent_entries(validations, promotions_by_id, names),
            "recentActivations": _recent_entries(user_activations, promotions_by_id, names),
        }
    )
    return base
