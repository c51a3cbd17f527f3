import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import DATABASE_URL

logger = logging.getLogger(__name__)

_SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL;",
    "PRAGMA foreign_keys=ON;",
    "PRAGMA busy_timeout=30000;",
)


def normalize_database_url(url: str) -> str:
    url = (url or "").strip()
    # Hosted Postgres providers hand out `postgres://` URLs; SQLAlchemy wants the dialect name.
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


def create_db_engine(url: str) -> Engine:
    """Engine for `url`; SQLite gets thread sharing and FK enforcement."""
    url = normalize_database_url(url)
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    # FastAPI runs sync endpoints in a threadpool, so connections cross threads.
    sqlite_engine = create_engine(
        url,
        pool_pre_ping=True,
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(sqlite_engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, connection_record):  # noqa: ANN001
        cursor = dbapi_connection.cursor()
        try:
            for pragma in _SQLITE_PRAGMAS:
                cursor.execute(pragma)
        except Exception as e:
            logger.warning("Failed to set SQLite pragmas: %s", e)
        finally:
            cursor.close()

    return sqlite_engine


engine = create_db_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    # Models must be imported before create_all sees their tables.
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
