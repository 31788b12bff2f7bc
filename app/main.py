import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, IntegrityError
from app.db import engine, Base
from app.settings import CORS_ORIGINS, LOG_LEVEL

from app.models.card import Card
from app.models.promotion import Promotion
from app.models.shop import Shop
from app.models.promo_activation import PromoActivation

from app.routes.cards import router as cards_router
from app.routes.shop import router as shop_router
from app.routes.shops import router as shops_router
from app.routes.promotions import router as promotions_router
from app.routes.admin import router as admin_router

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Promo Card Engine")

# ─── CORS ─────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─── STORE ERRORS ─────────────────────────────────────────────────
# La session est rollback à la fermeture : rien de partiel n'est committé.
@app.exception_handler(DBAPIError)
def store_error_handler(request: Request, exc: DBAPIError):
    logger.exception(
        "store call failed",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=503,
        content={"detail": "Store temporarily unavailable, try again"},
    )


@app.exception_handler(IntegrityError)
def conflict_error_handler(request: Request, exc: IntegrityError):
    logger.info("store constraint violated", extra={"path": request.url.path})
    return JSONResponse(status_code=409, content={"detail": "Conflicting write, resource already exists"})


@app.on_event("startup")
def startup():
    Base.metadata.create_all(bind=engine)


app.include_router(cards_router)
app.include_router(shop_router)
app.include_router(shops_router)
app.include_router(promotions_router)
app.include_router(admin_router)


@app.get("/")
def read_root():
    return {"message": "Promo Card Engine is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8001, reload=True)
