"""
Celery tasks: settle one payout after its delay; sweep overdue payouts.

settle_payout is queued by SettlementScheduler with countdown=delay. Delivery is
at-least-once (acks_late), so a repeated run must be harmless: SettlementService
no-ops unless it wins the PENDING -> PROCESSING claim.
"""
import logging

from directrent.core.celery_app import celery_app
from directrent.core.errors import ConsistencyFault
from directrent.db.session import SessionLocal
from directrent.services.payouts.settlement import SettlementService

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    name="directrent.workers.tasks.settle_payout.settle_payout",
    time_limit=60,
    soft_time_limit=50,
)
def settle_payout(self, payout_id: str) -> dict:
    """Advance one payout to its terminal state."""
    db = SessionLocal()
    try:
        view = SettlementService(db).settle(payout_id)
        if view is None:
            return {"ok": True, "payout_id": payout_id, "changed": False}
        return {"ok": True, "payout_id": payout_id, "changed": True, "status": view.status.value}
    except ConsistencyFault:
        # Row stays non-terminal; the overdue sweep picks it up again.
        logger.exception("settle_payout_consistency_fault", extra={"payout_id": payout_id})
        return {"ok": False, "payout_id": payout_id, "error": "consistency_fault"}
    finally:
        db.close()


@celery_app.task(
    name="directrent.workers.tasks.settle_payout.settle_overdue_payouts",
    time_limit=120,
    soft_time_limit=110,
)
def settle_overdue_payouts() -> dict:
    """Resolve PENDING/PROCESSING payouts whose timer was lost (restart, broker outage)."""
    db = SessionLocal()
    try:
        svc = SettlementService(db)
        settled = 0
        failed = 0
        for payout_id in svc.overdue_payout_ids():
            try:
                if svc.settle(payout_id) is not None:
                    settled += 1
            except ConsistencyFault:
                failed += 1
                logger.exception("settle_overdue_payout_error", extra={"payout_id": payout_id})
        if settled or failed:
            logger.info("settle_overdue_payouts_done", extra={"count": settled, "outcome": f"failed={failed}"})
        return {"settled": settled, "failed": failed}
    finally:
        db.close()
