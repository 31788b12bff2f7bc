import urllib.parse

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from app.settings import DATABASE_URL, STORE_TIMEOUT_SECONDS


def normalize_database_url(url: str) -> str:
    # sqlite:// n'a pas de netloc : le round-trip urlparse le casse
    if not url.startswith("postgres"):
        return url

    # Ensure proper encoding by parsing and reconstructing the URL
    try:
        parsed = urllib.parse.urlparse(url)
        return urllib.parse.urlunparse(parsed)
    except Exception:
        # If parsing fails, ensure it's a valid UTF-8 string by replacing invalid bytes
        return url.encode('utf-8', errors='replace').decode('utf-8')


DATABASE_URL = normalize_database_url(DATABASE_URL)

connect_args = {}
if DATABASE_URL.startswith("postgres"):
    connect_args = {
        "connect_timeout": STORE_TIMEOUT_SECONDS,
        "options": f"-c timezone=utc -c statement_timeout={STORE_TIMEOUT_SECONDS * 1000}",
    }
elif DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False, "timeout": STORE_TIMEOUT_SECONDS}

engine_kwargs = {"connect_args": connect_args}
if not DATABASE_URL.startswith("sqlite"):
    engine_kwargs["pool_timeout"] = STORE_TIMEOUT_SECONDS

engine = create_engine(DATABASE_URL, **engine_kwargs)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
