"""
Celery beat task: emit the quota cycle reset event on a rolling window.

quota_cycle_days = 0 disables the sweep; resets then come only from explicit
QuotaLedger.reset_cycle calls (e.g. subscription activation).
"""
import logging

from directrent.core.celery_app import celery_app
from directrent.db.session import SessionLocal
from directrent.quota.config import get_cycle_days
from directrent.quota.ledger import QuotaLedger

logger = logging.getLogger(__name__)


@celery_app.task(
    name="directrent.workers.tasks.quota_cycle.reset_expired_quota_cycles",
    time_limit=300,
    soft_time_limit=290,
)
def reset_expired_quota_cycles() -> dict:
    cycle_days = get_cycle_days()
    if cycle_days <= 0:
        return {"reset": 0, "disabled": True}

    db = SessionLocal()
    try:
        ledger = QuotaLedger(db)
        reset = 0
        for principal_id in ledger.principals_due_for_reset(cycle_days):
            if ledger.reset_cycle(principal_id):
                reset += 1
        logger.info("reset_expired_quota_cycles_done", extra={"count": reset})
        return {"reset": reset, "disabled": False}
    except Exception:
        db.rollback()
        logger.exception("reset_expired_quota_cycles_error")
        return {"reset": 0, "error": "exception"}
    finally:
        db.close()
