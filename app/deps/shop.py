from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.shop import Shop
from app.services.shop_service import authenticate_shop


def get_active_shop(
    x_shop_pin: str | None = Header(default=None, alias="X-Shop-Pin"),
    db: Session = Depends(get_db),
) -> Shop:
    if not x_shop_pin:
        raise HTTPException(
            status_code=401,
            detail="Missing shop context. Provide X-Shop-Pin header.",
        )

    shop = authenticate_shop(db, x_shop_pin)
    if not shop:
        raise HTTPException(status_code=401, detail="Invalid PIN")
    return shop
