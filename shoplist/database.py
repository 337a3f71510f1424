import logging

from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from shoplist.config import settings

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    """Pool settings for server databases; SQLite (dev, tests) gets a thread-shareable connection."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size":     settings.DATABASE_POOL_SIZE,
        "max_overflow":  settings.DATABASE_MAX_OVERFLOW,
        "pool_timeout":  settings.DATABASE_POOL_TIMEOUT,
        "pool_pre_ping": True,
    }


def enable_sqlite_foreign_keys(target) -> None:
    """SQLite only enforces ON DELETE CASCADE / SET NULL with foreign_keys on, per connection."""
    @event.listens_for(target, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DATABASE_ECHO,
    **_engine_options(settings.DATABASE_URL),
)
if settings.DATABASE_URL.startswith("sqlite"):
    enable_sqlite_foreign_keys(engine)

# expire_on_commit=False: services hand committed User/RefreshToken objects back to the routes
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


class Base(DeclarativeBase):
    """Declarative base shared by every model in shoplist/models/."""


def get_db():
    """
    Request-scoped session. Services commit their own unit of work;
    anything left open when the request fails is rolled back here.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def check_db_connection() -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        return False
    return True
