import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.card import Card
from app.models.promo_activation import PromoActivation
from app.models.promotion import Promotion
from app.schemas.enums import Actor, PromotionStatus, UsageLimit
from app.services.card_service import get_active_card
from app.services.eligibility_service import filter_eligible, is_eligible


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class LedgerState:
    has_user_record: bool = False
    has_shop_record: bool = False


@dataclass
class PromotionView:
    promotion: Promotion
    status: PromotionStatus

    @property
    def can_validate(self) -> bool:
        return self.status is PromotionStatus.READY


# ============================================================
# LEDGER
# ============================================================
def get_ledger_states(db: Session, card_id: str, promotion_ids) -> dict:
    ids = list(promotion_ids)
    states = {pid: LedgerState() for pid in ids}
    if not ids:
        return states

    rows = (
        db.query(PromoActivation.promotion_id, PromoActivation.activated_by)
        .filter(PromoActivation.card_id == card_id)
        .filter(PromoActivation.promotion_id.in_(ids))
        .distinct()
        .all()
    )

    for promotion_id, activated_by in rows:
        actor = Actor(activated_by)
        state = states[promotion_id]
        if actor is Actor.USER:
            state.has_user_record = True
        elif actor is Actor.SHOP:
            state.has_shop_record = True
        else:
            raise ValueError(f"Unsupported actor: {activated_by}")

    return states


def _exclusive_slot(promotion: Promotion, actor: Actor) -> str | None:
    if actor is Actor.USER:
        return Actor.USER.value

    if actor is Actor.SHOP:
        limit = UsageLimit(promotion.usage_limit)
        if limit is UsageLimit.SINGLE:
            return Actor.SHOP.value
        if limit is UsageLimit.UNLIMITED:
            return None
        raise ValueError(f"Unsupported usage_limit: {promotion.usage_limit}")

    raise ValueError(f"Unsupported actor: {actor}")


def _append_record(
    db: Session,
    *,
    card_id: str,
    promotion: Promotion,
    actor: Actor,
    shop_id=None,
    conflict_detail: str,
) -> PromoActivation:
    record = PromoActivation(
        card_id=card_id,
        promotion_id=promotion.id,
        activated_by=actor.value,
        shop_id=shop_id,
        exclusive_slot=_exclusive_slot(promotion, actor),
        activated_at=_utcnow(),
    )
    db.add(record)

    # la contrainte unique tranche les requêtes concurrentes
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        logger.info(
            "ledger write rejected by unique constraint",
            extra={"card_id": card_id, "promotion_id": str(promotion.id), "actor": actor.value},
        )
        raise HTTPException(status_code=409, detail=conflict_detail)

    return record


# ============================================================
# STATE MACHINE
# ============================================================
def compute_status(promotion, *, has_user_record: bool, has_shop_record: bool) -> PromotionStatus:
    limit = UsageLimit(promotion.usage_limit)

    if limit is UsageLimit.SINGLE:
        if has_shop_record:
            return PromotionStatus.CONSUMED
    elif limit is not UsageLimit.UNLIMITED:
        raise ValueError(f"Unsupported usage_limit: {promotion.usage_limit}")

    if promotion.requires_activation and not has_user_record:
        return PromotionStatus.PENDING_USER_ACTIVATION

    return PromotionStatus.READY


def evaluate_promotion(db: Session, card: Card, promotion: Promotion, *, shop_id=None) -> PromotionStatus:
    if not is_eligible(card, promotion, card_id=card.card_id, shop_id=shop_id):
        return PromotionStatus.NOT_APPLICABLE

    state = get_ledger_states(db, card.card_id, [promotion.id])[promotion.id]
    return compute_status(
        promotion,
        has_user_record=state.has_user_record,
        has_shop_record=state.has_shop_record,
    )


def list_card_promotions(db: Session, card: Card, *, shop_id=None) -> list[PromotionView]:
    catalog = (
        db.query(Promotion)
        .filter(Promotion.active.is_(True))
        .order_by(Promotion.created_at.desc(), Promotion.id.desc())
        .all()
    )

    eligible = filter_eligible(card, catalog, card_id=card.card_id, shop_id=shop_id)
    states = get_ledger_states(db, card.card_id, [p.id for p in eligible])

    views = []
    for promotion in eligible:
        state = states[promotion.id]
        status = compute_status(
            promotion,
            has_user_record=state.has_user_record,
            has_shop_record=state.has_shop_record,
        )
        # une promotion consommée n'est plus proposée nulle part
        if status is PromotionStatus.CONSUMED:
            continue
        views.append(PromotionView(promotion=promotion, status=status))

    return views


def split_pending(views: list[PromotionView]):
    pending = [v for v in views if v.status is PromotionStatus.PENDING_USER_ACTIVATION]
    available = [v for v in views if v.status is not PromotionStatus.PENDING_USER_ACTIVATION]
    return pending, available


def _get_promotion(db: Session, promotion_id) -> Promotion:
    try:
        pid = uuid.UUID(str(promotion_id))
    except ValueError:
        raise HTTPException(status_code=404, detail="Promotion not found")

    promotion = db.query(Promotion).filter(Promotion.id == pid).first()
    if not promotion:
        raise HTTPException(status_code=404, detail="Promotion not found")
    return promotion


# ============================================================
# PENDING_USER_ACTIVATION -> READY (le client active lui-même)
# ============================================================
def activate_by_user(db: Session, card_id: str, promotion_id):
    card = get_active_card(db, card_id)
    promotion = _get_promotion(db, promotion_id)

    status = evaluate_promotion(db, card, promotion)

    if status is PromotionStatus.NOT_APPLICABLE:
        raise HTTPException(status_code=404, detail="Promotion not available for this card")
    if not promotion.requires_activation:
        raise HTTPException(status_code=400, detail="Promotion does not require activation")
    if status is PromotionStatus.CONSUMED:
        raise HTTPException(status_code=409, detail="Promotion already used")
    if status is PromotionStatus.READY:
        raise HTTPException(status_code=409, detail="Promotion already activated")
    if status is not PromotionStatus.PENDING_USER_ACTIVATION:
        raise ValueError(f"Unsupported promotion status: {status}")

    record = _append_record(
        db,
        card_id=card.card_id,
        promotion=promotion,
        actor=Actor.USER,
        conflict_detail="Promotion already activated",
    )

    logger.info(
        "promotion activated by user",
        extra={"card_id": card.card_id, "promotion_id": str(promotion.id)},
    )
    return record


# ============================================================
# READY -> CONSUMED (validation en magasin)
# ============================================================
def validate_by_shop(db: Session, card_id: str, promotion_id, shop_id):
    card = get_active_card(db, card_id)
    promotion = _get_promotion(db, promotion_id)

    status = evaluate_promotion(db, card, promotion, shop_id=shop_id)

    if status is PromotionStatus.NOT_APPLICABLE:
        raise HTTPException(status_code=404, detail="Promotion not available for this card at this shop")
    if status is PromotionStatus.PENDING_USER_ACTIVATION:
        raise HTTPException(status_code=409, detail="Promotion requires user activation first")
    if status is PromotionStatus.CONSUMED:
        raise HTTPException(status_code=409, detail="Promotion already used")
    if status is not PromotionStatus.READY:
        raise ValueError(f"Unsupported promotion status: {status}")

    record = _append_record(
        db,
        card_id=card.card_id,
        promotion=promotion,
        actor=Actor.SHOP,
        shop_id=shop_id,
        conflict_detail="Promotion already used",
    )

    logger.info(
        "promotion validated by shop",
        extra={
            "card_id": card.card_id,
            "promotion_id": str(promotion.id),
            "shop_id": str(shop_id),
            "usage_limit": promotion.usage_limit,
        },
    )
    return record


def current_status(db: Session, card_id: str, promotion_id, *, shop_id=None) -> PromotionStatus:
    """Status re-read from persisted ledger rows, after commit."""
    card = get_active_card(db, card_id)
    promotion = _get_promotion(db, promotion_id)
    return evaluate_promotion(db, card, promotion, shop_id=shop_id)
