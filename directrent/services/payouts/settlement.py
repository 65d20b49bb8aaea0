"""
SettlementService: drives a PayoutRequest to exactly one terminal state.

PENDING -> PROCESSING -> COMPLETED | FAILED (PENDING may go straight to a
terminal state). Every transition is a conditional UPDATE on the status the
caller just read; a zero rowcount means another worker got there first and the
call is a no-op. settle() claims the request (PENDING -> PROCESSING) before the
backend is asked, so only one worker ever talks to the gateway for a given
request. FAILED is the only transition that touches the provider balance: it
restores the locked amount in the same transaction.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from directrent.core.config import settings
from directrent.db.transaction import run_atomic
from directrent.domain.enums import ALLOWED_PAYOUT_TRANSITIONS, PayoutStatus
from directrent.models.payout_request import PayoutRequest
from directrent.services.payouts.backend import SettlementBackend, get_settlement_backend
from directrent.services.payouts.models import PayoutView
from directrent.services.payouts.service import add_to_balance
from directrent.utils.metrics import metrics

logger = logging.getLogger(__name__)


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SettlementService:
    def __init__(self, db: Session, backend: SettlementBackend | None = None):
        self.db = db
        self.backend = backend or get_settlement_backend()

    # ------------------------------------------------------------------
    # Worker entry point
    # ------------------------------------------------------------------

    def settle(self, payout_id: str) -> PayoutView | None:
        """Claim the request, ask the backend for an outcome and apply it. None if nothing changed."""
        claimed = self.mark_processing(payout_id)
        if claimed is None:
            logger.info("payout_settle_not_claimed", extra={"payout_id": payout_id})
            return None

        outcome = self.backend.settle(claimed)
        if outcome.status == PayoutStatus.COMPLETED:
            return self.complete(payout_id)
        return self.fail(payout_id, outcome.reason or "settlement_failed")

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def mark_processing(self, payout_id: str) -> PayoutView | None:
        """Claim a PENDING request, or take over a PROCESSING claim that has gone stale."""
        return self._transition(payout_id, PayoutStatus.PROCESSING)

    def complete(self, payout_id: str) -> PayoutView | None:
        return self._transition(payout_id, PayoutStatus.COMPLETED)

    def fail(self, payout_id: str, reason: str) -> PayoutView | None:
        """Terminal failure; the locked amount goes back to the provider's balance."""
        return self._transition(payout_id, PayoutStatus.FAILED, reason=reason)

    def _transition(
        self,
        payout_id: str,
        target: PayoutStatus,
        reason: str | None = None,
    ) -> PayoutView | None:
        view = run_atomic(
            self.db,
            lambda: self._transition_once(payout_id, target, reason),
            operation=f"payout_{target.value.lower()}",
        )
        if view is not None and target.is_terminal:
            metrics.inc_settlement(target.value)
        return view

    def _transition_once(
        self,
        payout_id: str,
        target: PayoutStatus,
        reason: str | None,
    ) -> PayoutView | None:
        payout = (
            self.db.query(PayoutRequest)
            .filter(PayoutRequest.id == payout_id)
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )
        if payout is None:
            self.db.rollback()
            logger.warning("payout_transition_not_found", extra={"payout_id": payout_id})
            return None

        now = datetime.now(timezone.utc)
        current = PayoutStatus(payout.status)
        guard = [PayoutRequest.id == payout_id, PayoutRequest.status == current.value]
        if target == PayoutStatus.PROCESSING and self._is_stale_claim(payout, now):
            # take over only the claim we observed, not a fresher one
            guard.append(PayoutRequest.processing_at == payout.processing_at)
        elif target not in ALLOWED_PAYOUT_TRANSITIONS[current]:
            self._skip(payout_id, current, target)
            return None

        changes = {"status": target.value}
        if target == PayoutStatus.PROCESSING:
            changes["processing_at"] = now
        else:
            changes["completed_at"] = now
        if target == PayoutStatus.FAILED:
            changes["failure_reason"] = reason

        view = PayoutView.from_row(payout).model_copy(update={**changes, "status": target})
        result = self.db.execute(update(PayoutRequest).where(*guard).values(**changes))
        if result.rowcount == 0:
            self._skip(payout_id, current, target, lost=True)
            return None

        new_balance = None
        if target == PayoutStatus.FAILED:
            new_balance = add_to_balance(self.db, view.provider_id, view.amount)
        self.db.commit()

        logger.info(
            "payout_transition",
            extra={
                "payout_id": payout_id,
                "provider_id": view.provider_id,
                "old_status": current.value,
                "new_status": target.value,
                "reason": reason,
                "new_balance": str(new_balance) if new_balance is not None else None,
            },
        )
        return view

    def _skip(self, payout_id: str, current: PayoutStatus, target: PayoutStatus, lost: bool = False) -> None:
        self.db.rollback()
        logger.info(
            "payout_transition_lost" if lost else "payout_transition_skipped",
            extra={
                "payout_id": payout_id,
                "old_status": current.value,
                "new_status": target.value,
            },
        )

    @staticmethod
    def _is_stale_claim(payout: PayoutRequest, now: datetime) -> bool:
        if payout.status != PayoutStatus.PROCESSING.value:
            return False
        claimed_at = _aware(payout.processing_at)
        if claimed_at is None:
            return True
        return claimed_at <= now - timedelta(seconds=settings.payout_processing_timeout_seconds)

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------

    def overdue_payout_ids(self, now: datetime | None = None) -> list[str]:
        """PENDING requests past their settlement delay, plus PROCESSING claims that went stale."""
        now = now or datetime.now(timezone.utc)
        pending_cutoff = now - timedelta(seconds=settings.payout_settlement_delay_seconds)
        claim_cutoff = now - timedelta(seconds=settings.payout_processing_timeout_seconds)
        rows = (
            self.db.query(PayoutRequest.id)
            .filter(
                or_(
                    (PayoutRequest.status == PayoutStatus.PENDING.value)
                    & (PayoutRequest.created_at <= pending_cutoff),
                    (PayoutRequest.status == PayoutStatus.PROCESSING.value)
                    & (PayoutRequest.processing_at <= claim_cutoff),
                )
            )
            .order_by(PayoutRequest.created_at.asc())
            .all()
        )
        return [row[0] for row in rows]
