import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from .config import settings

log = logging.getLogger("pushgate.db")


def _normalized_database_url(raw_url: str) -> str:
    """postgres:// ve postgresql:// adresleri psycopg3 dialektine çevrilir; diğerleri (SQLite) olduğu gibi."""
    if not raw_url:
        return "sqlite:///./pushgate.db"
    raw_url = raw_url.strip()
    scheme, sep, rest = raw_url.partition("://")
    if scheme in ("postgres", "postgresql"):
        return f"postgresql+psycopg{sep}{rest}"
    return raw_url


DATABASE_URL = _normalized_database_url(settings.database_url)
_is_sqlite = DATABASE_URL.startswith("sqlite")

# In-memory SQLite: tek bağlantı, tablolar tüm oturumlarda görünür (testler)
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if _is_sqlite else {},
    poolclass=StaticPool if _is_sqlite and ":memory:" in DATABASE_URL else None,
    pool_pre_ping=not _is_sqlite,
)


def get_db():
    with Session(engine) as session:
        yield session


def init_db():
    from pushgate import models  # noqa: F401  tablolar metadata'ya kayıt olsun

    SQLModel.metadata.create_all(engine)
    log.info("Database ready (%s)", engine.url.get_backend_name())


def check_database() -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        log.error("Database check failed: %s", e)
        return False
