"""
Bounded retry for transactional units that hit lock contention.

Only OperationalError (lock wait timeout, deadlock victim, dropped connection)
is retried. Every attempt starts from a rolled back session, so a unit either
commits whole or leaves nothing behind.
"""
import logging
from typing import Callable, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from directrent.core.config import settings
from directrent.core.errors import ConsistencyFault
from directrent.utils.metrics import metrics

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_atomic(
    db: Session,
    unit: Callable[[], T],
    operation: str,
    attempts: int | None = None,
) -> T:
    """Run `unit` (which commits on success); roll back and retry on OperationalError."""
    max_attempts = max(1, attempts if attempts is not None else settings.consistency_retry_attempts)
    for attempt in range(1, max_attempts + 1):
        try:
            return unit()
        except OperationalError as e:
            db.rollback()
            logger.warning(
                "consistency_retry",
                extra={"reason": operation, "attempt": attempt, "error": str(e.orig) if e.orig else str(e)},
            )
            if attempt >= max_attempts:
                metrics.inc_consistency_fault(operation)
                raise ConsistencyFault(f"{operation} failed after {attempt} attempts") from e
        except Exception:
            db.rollback()
            raise
    raise ConsistencyFault(operation)  # pragma: no cover
