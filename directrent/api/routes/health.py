from fastapi import APIRouter, Depends, Response
import redis
from sqlalchemy import text
from sqlalchemy.orm import Session

from directrent.core.config import settings
from directrent.db.session import get_db


router = APIRouter()


def _check_database(db: Session) -> str | None:
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        return f"database: {e}"
    return None


def _check_broker() -> str | None:
    """Settlement timers ride on the Celery broker; without it payouts stay PENDING."""
    try:
        client = redis.Redis.from_url(settings.redis_url, socket_connect_timeout=2)
        client.ping()
    except Exception as e:
        return f"redis: {e}"
    return None


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/ready")
def readiness(response: Response, db: Session = Depends(get_db)) -> dict:
    """503 with the failing checks when the database or Redis is unreachable."""
    failures = [f for f in (_check_database(db), _check_broker()) if f]
    if failures:
        response.status_code = 503
        return {"status": "not_ready", "errors": failures}
    return {"status": "ready"}
