from types import SimpleNamespace

import pytest

from app.models.card import Card
from app.models.promo_activation import PromoActivation
from app.models.promotion import Promotion
from app.models.shop import Shop
from app.schemas.card import HolderCreate
from app.schemas.enums import PromotionStatus
from app.services import activation_service, card_service, shop_service
from app.services.activation_service import (
    LedgerState,
    activate_by_user,
    compute_status,
    evaluate_promotion,
    get_ledger_states,
    validate_by_shop,
)
from fastapi import HTTPException


def _promo(usage_limit="Single", requires_activation=False):
    return SimpleNamespace(usage_limit=usage_limit, requires_activation=requires_activation)


@pytest.mark.parametrize(
    "usage_limit,requires_activation,has_user,has_shop,expected",
    [
        ("Single", True, False, False, PromotionStatus.PENDING_USER_ACTIVATION),
        ("Single", True, True, False, PromotionStatus.READY),
        ("Single", True, True, True, PromotionStatus.CONSUMED),
        ("Single", False, False, False, PromotionStatus.READY),
        ("Single", False, False, True, PromotionStatus.CONSUMED),
        ("Unlimited", False, False, True, PromotionStatus.READY),
        ("Unlimited", True, False, False, PromotionStatus.PENDING_USER_ACTIVATION),
        ("Unlimited", True, True, True, PromotionStatus.READY),
    ],
)
def test_compute_status(usage_limit, requires_activation, has_user, has_shop, expected):
    status = compute_status(
        _promo(usage_limit, requires_activation),
        has_user_record=has_user,
        has_shop_record=has_shop,
    )
    assert status is expected


def test_compute_status_rejects_unknown_usage_limit():
    with pytest.raises(ValueError):
        compute_status(_promo("Twice"), has_user_record=False, has_shop_record=False)


# =============================================================================
# SERVICE LEVEL (ledger writes through a real session)
# =============================================================================


@pytest.fixture
def world(db_session):
    shop = Shop(name="Negozio Principale", pin_digest="digest-1")
    card = Card(card_id="SB-0001", name="Anna", surname="Bini", age=16, gender="Female")
    db_session.add_all([shop, card])
    db_session.flush()

    promotion = Promotion(
        title="Sconto Studenti",
        description="Solo per studenti",
        usage_limit="Single",
        requires_activation=True,
        target_users=[],
        shops=[str(shop.id)],
    )
    db_session.add(promotion)
    db_session.commit()
    return SimpleNamespace(shop=shop, card=card, promotion=promotion)


def test_two_phase_protocol(db_session, world):
    card, promotion, shop = world.card, world.promotion, world.shop

    assert evaluate_promotion(db_session, card, promotion, shop_id=shop.id) is PromotionStatus.PENDING_USER_ACTIVATION

    with pytest.raises(HTTPException) as exc:
        validate_by_shop(db_session, card.card_id, promotion.id, shop.id)
    assert exc.value.status_code == 409

    activate_by_user(db_session, card.card_id, promotion.id)
    db_session.commit()
    assert evaluate_promotion(db_session, card, promotion, shop_id=shop.id) is PromotionStatus.READY

    validate_by_shop(db_session, card.card_id, promotion.id, shop.id)
    db_session.commit()
    assert evaluate_promotion(db_session, card, promotion, shop_id=shop.id) is PromotionStatus.CONSUMED

    states = get_ledger_states(db_session, card.card_id, [promotion.id])
    assert states[promotion.id].has_user_record
    assert states[promotion.id].has_shop_record


def test_duplicate_user_activation_rejected(db_session, world):
    activate_by_user(db_session, world.card.card_id, world.promotion.id)
    db_session.commit()

    with pytest.raises(HTTPException) as exc:
        activate_by_user(db_session, world.card.card_id, world.promotion.id)
    assert exc.value.status_code == 409


def test_ineligible_shop_is_not_applicable(db_session, world):
    other = Shop(name="Filiale Centro", pin_digest="digest-2")
    db_session.add(other)
    db_session.commit()

    status = evaluate_promotion(db_session, world.card, world.promotion, shop_id=other.id)
    assert status is PromotionStatus.NOT_APPLICABLE


# =============================================================================
# CONCURRENT WRITES (the unique constraints decide, not the pre-checks)
# =============================================================================


def _records(db_session, card_id, promotion_id, actor):
    return (
        db_session.query(PromoActivation)
        .filter(
            PromoActivation.card_id == card_id,
            PromoActivation.promotion_id == promotion_id,
            PromoActivation.activated_by == actor,
        )
        .count()
    )


def _stale_ledger(**state):
    # ce que voit une requête concurrente qui a lu le ledger avant l'écriture de l'autre
    def _read(db, card_id, promotion_ids):
        return {pid: LedgerState(**state) for pid in promotion_ids}

    return _read


class TestConcurrentWrites:

    def test_second_user_activation_loses_on_constraint(self, db_session, world, monkeypatch):
        activate_by_user(db_session, world.card.card_id, world.promotion.id)
        db_session.commit()

        monkeypatch.setattr(activation_service, "get_ledger_states", _stale_ledger())

        with pytest.raises(HTTPException) as exc:
            activate_by_user(db_session, "SB-0001", world.promotion.id)
        assert exc.value.status_code == 409
        assert exc.value.detail == "Promotion already activated"

        assert _records(db_session, "SB-0001", world.promotion.id, "user") == 1

    def test_second_single_use_validation_loses_on_constraint(self, db_session, world, monkeypatch):
        activate_by_user(db_session, world.card.card_id, world.promotion.id)
        validate_by_shop(db_session, world.card.card_id, world.promotion.id, world.shop.id)
        db_session.commit()

        monkeypatch.setattr(activation_service, "get_ledger_states", _stale_ledger(has_user_record=True))

        with pytest.raises(HTTPException) as exc:
            validate_by_shop(db_session, "SB-0001", world.promotion.id, world.shop.id)
        assert exc.value.status_code == 409
        assert exc.value.detail == "Promotion already used"

        assert _records(db_session, "SB-0001", world.promotion.id, "shop") == 1

    def test_unlimited_validations_append_freely(self, db_session, world):
        world.promotion.usage_limit = "Unlimited"
        world.promotion.requires_activation = False
        db_session.commit()

        for _ in range(3):
            validate_by_shop(db_session, world.card.card_id, world.promotion.id, world.shop.id)
            db_session.commit()

        assert _records(db_session, "SB-0001", world.promotion.id, "shop") == 3
        slots = {r.exclusive_slot for r in db_session.query(PromoActivation).all()}
        assert slots == {None}

    def test_card_created_concurrently_is_not_overwritten(self, db_session, world, monkeypatch):
        # la carte active existe, mais la requête concurrente ne l'a pas encore vue
        monkeypatch.setattr(card_service, "get_card", lambda db, card_id: None)

        holder = HolderCreate(
            name="Luca", surname="Verdi", age=40, gender="Male",
            email="luca@example.com", phone="+39 333 0000000",
        )
        with pytest.raises(HTTPException) as exc:
            card_service.activate_card(db_session, "SB-0001", holder)
        assert exc.value.status_code == 409

        cards = db_session.query(Card).filter(Card.card_id == "SB-0001").all()
        assert len(cards) == 1
        assert cards[0].name == "Anna"

    def test_duplicate_pin_loses_on_constraint(self, db_session, monkeypatch):
        shop_service.create_shop(db_session, name="Negozio Principale", pin="4321")
        db_session.commit()

        monkeypatch.setattr(shop_service, "_pin_in_use", lambda db, digest, exclude_id=None: False)

        with pytest.raises(HTTPException) as exc:
            shop_service.create_shop(db_session, name="Filiale Centro", pin="4321")
        assert exc.value.status_code == 409

        assert db_session.query(Shop).count() == 1
