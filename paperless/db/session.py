import logging
import time

from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from paperless.config import settings

log = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./paperless.db"

# libpq-style urls are driven with psycopg 3
_DRIVER_PREFIXES = {
    "postgres://": "postgresql+psycopg://",
    "postgresql://": "postgresql+psycopg://",
}

class Base(DeclarativeBase):
    pass

def normalize_url(raw: str | None) -> str:
    url = raw or DEFAULT_DATABASE_URL
    for prefix, replacement in _DRIVER_PREFIXES.items():
        if url.startswith(prefix):
            return replacement + url[len(prefix):]
    return url

url = normalize_url(settings.database_url)

engine = create_engine(
    url,
    connect_args={"check_same_thread": False} if url.startswith("sqlite") else {},
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=True)

def connect_with_retry(retries: int | None = None, backoff_seconds: float | None = None) -> None:
    """Ping the database, retrying a fixed number of times with a fixed pause.

    Only used at process startup; requests never retry.
    """
    retries = settings.db_connect_retries if retries is None else retries
    backoff_seconds = settings.db_connect_backoff_seconds if backoff_seconds is None else backoff_seconds

    while True:
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            log.info("Connected to database")
            return
        except OperationalError as exc:
            log.error("Database connection error: %s", exc)
            if retries <= 0:
                raise RuntimeError("Failed to connect to database after multiple retries") from exc
            log.info("Retrying connection... (%d attempts remaining)", retries)
            retries -= 1
            time.sleep(backoff_seconds)

def init_db():
    from paperless.models import user, document
    Base.metadata.create_all(bind=engine)
