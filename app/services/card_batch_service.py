from __future__ import annotations

import argparse
import csv
import logging
import re
import sys

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db import SessionLocal
from app.models.card import Card
from app.settings import ACTIVATION_BASE_URL, CARD_ID_PREFIX


logger = logging.getLogger(__name__)

NUMBER_WIDTH = 4


def activation_url(card_id: str) -> str:
    return f"{ACTIVATION_BASE_URL}/{card_id}"


def _next_number(db: Session, prefix: str) -> int:
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")

    rows = db.query(Card.card_id).filter(Card.card_id.startswith(prefix, autoescape=True)).all()

    highest = 0
    for (card_id,) in rows:
        m = pattern.match(card_id)
        if m:
            highest = max(highest, int(m.group(1)))
    return highest + 1


def preregister_cards(db: Session, count: int, prefix: str | None = None) -> list[dict]:
    """
    Creates `count` empty cards with sequential ids (SB-0001, SB-0002, ...)
    following the highest existing number for the prefix.
    """
    if count < 1:
        raise HTTPException(status_code=400, detail="count must be >= 1")

    prefix = prefix or CARD_ID_PREFIX
    start = _next_number(db, prefix)

    card_ids = [f"{prefix}{n:0{NUMBER_WIDTH}d}" for n in range(start, start + count)]
    for card_id in card_ids:
        db.add(Card(card_id=card_id))

    try:
        db.flush()
    except IntegrityError:
        # un autre lot a pris les mêmes numéros
        db.rollback()
        raise HTTPException(status_code=409, detail="Card ids already taken, retry the batch")

    logger.info(
        "cards pre-registered",
        extra={"count": count, "first": card_ids[0], "last": card_ids[-1]},
    )
    return [{"card_id": cid, "activation_url": activation_url(cid)} for cid in card_ids]


def main(argv=None):
    parser = argparse.ArgumentParser(description="Pre-register printable loyalty cards.")
    parser.add_argument("--count", type=int, default=5)
    parser.add_argument("--prefix", default=None)
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        items = preregister_cards(db, args.count, args.prefix)
        db.commit()
    finally:
        db.close()

    writer = csv.DictWriter(sys.stdout, fieldnames=["card_id", "activation_url"])
    writer.writeheader()
    writer.writerows(items)


if __name__ == "__main__":
    main()
