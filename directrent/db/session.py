from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from directrent.core.config import settings


def _engine_kwargs() -> dict:
    if settings.is_sqlite:
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_recycle": 1800,  # recycle connections every 30 min (avoid stale)
        "connect_args": {"connect_timeout": settings.db_connect_timeout},
    }


engine = create_engine(settings.database_url, **_engine_kwargs())
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """Create tables that do not exist yet (dev/SQLite; production uses migrations)."""
    from directrent.db.base import Base
    from directrent.models import contact_unlock, payout_request, property, provider_balance, user  # noqa: F401

    Base.metadata.create_all(bind=engine)
