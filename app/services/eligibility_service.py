"""
Eligibility filter: décide quelles promotions sont visibles pour une carte.

Fonction pure (aucun accès base). Les promotions et la carte peuvent être des
modèles ORM ou tout objet exposant les mêmes attributs.
"""
from typing import Iterable

from app.schemas.enums import TargetGender, TargetMode


def _as_list(value) -> list:
    if not value:
        return []
    return [str(v) for v in value]


def _gender_matches(target_gender: str, holder_gender: str | None) -> bool:
    target = TargetGender(target_gender)

    if target is TargetGender.ALL:
        return True
    if target is TargetGender.MALE or target is TargetGender.FEMALE:
        return holder_gender == target.value

    raise ValueError(f"Unsupported target_gender: {target_gender}")


def _age_matches(promotion, holder_age: int | None) -> bool:
    if holder_age is None:
        return False
    return int(promotion.target_age_min) <= int(holder_age) <= int(promotion.target_age_max)


def _audience_matches(promotion, card, card_id: str) -> bool:
    mode = TargetMode(promotion.target_mode)

    # Personam : seule la liste explicite compte, pas de filtre âge/genre
    if mode is TargetMode.PERSONAM:
        return card_id in _as_list(promotion.target_users)
    if mode is TargetMode.ALL:
        return _gender_matches(promotion.target_gender, card.gender) and _age_matches(promotion, card.age)

    raise ValueError(f"Unsupported target_mode: {promotion.target_mode}")


def is_eligible(card, promotion, *, card_id: str, shop_id: str | None = None) -> bool:
    if not promotion.active:
        return False

    if not _audience_matches(promotion, card, card_id):
        return False

    # shops vide = valable nulle part
    if shop_id is not None and str(shop_id) not in _as_list(promotion.shops):
        return False

    return True


def filter_eligible(card, promotions: Iterable, *, card_id: str, shop_id: str | None = None) -> list:
    """Keeps the input order; callers pass promotions newest first."""
    return [
        p for p in promotions
        if is_eligible(card, p, card_id=card_id, shop_id=shop_id)
    ]
