"""
Settlement scheduling: one delayed Celery task per payout request.

The PENDING row is the durable record; if the broker loses the task (or the
worker restarts) the overdue sweep in workers.tasks.settle_payout resolves it.
"""
import logging

from directrent.core.config import settings

logger = logging.getLogger(__name__)

SETTLE_TASK_NAME = "directrent.workers.tasks.settle_payout.settle_payout"


class SettlementScheduler:
    def __init__(self, delay_seconds: int | None = None):
        self.delay_seconds = (
            delay_seconds if delay_seconds is not None else settings.payout_settlement_delay_seconds
        )

    def schedule(self, payout_id: str) -> bool:
        """Queue settlement after the fixed delay. Returns False if the broker refused."""
        from directrent.core.celery_app import celery_app

        try:
            celery_app.send_task(
                SETTLE_TASK_NAME,
                args=[payout_id],
                countdown=self.delay_seconds,
            )
        except Exception as e:
            logger.warning(
                "payout_settlement_schedule_failed",
                extra={"payout_id": payout_id, "error": str(e)},
            )
            return False
        logger.info(
            "payout_settlement_scheduled",
            extra={"payout_id": payout_id, "delay_seconds": self.delay_seconds},
        )
        return True
