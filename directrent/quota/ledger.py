"""
QuotaLedger: contact-unlock units per principal per cycle.

Numeric tiers: try_debit is one conditional UPDATE (used < ceiling -> used + 1),
so two debits racing for the last unit cannot both succeed. Unbounded tiers are
never counted. Callers that need the check and the debit inside one critical
section (the unlock engine) take lock_principal first.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import update
from sqlalchemy.orm import Session

from directrent.core.errors import PrincipalNotFound, QuotaExhausted
from directrent.domain.enums import SubscriptionTier, Unbounded
from directrent.identity.models import Principal
from directrent.models.user import User
from directrent.quota.config import ceiling_for, remaining_units, upgrade_options
from directrent.quota.models import TierQuota
from directrent.utils.metrics import metrics

logger = logging.getLogger(__name__)


def quota_for(tier: SubscriptionTier) -> TierQuota:
    return TierQuota(tier=tier, ceiling=ceiling_for(tier))


class QuotaLedger:
    def __init__(self, db: Session):
        self.db = db

    def lock_principal(self, principal_id: str) -> User:
        """SELECT ... FOR UPDATE on the user row: serializes quota work for one principal only."""
        locked = (
            self.db.query(User)
            .filter(User.id == principal_id)
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )
        if locked is None:
            raise PrincipalNotFound("User not found")
        return locked

    def units_used(self, principal_id: str) -> int:
        used = (
            self.db.query(User.units_used_this_cycle)
            .filter(User.id == principal_id)
            .scalar()
        )
        return used or 0

    def units_remaining(self, principal: Principal) -> int | Unbounded:
        quota = quota_for(principal.subscription_tier)
        if quota.is_unbounded:
            return quota.ceiling
        return remaining_units(principal.subscription_tier, self.units_used(principal.id))

    def try_debit(self, principal: Principal) -> None:
        """Spend one unit or raise QuotaExhausted. Flushes, does not commit."""
        quota = quota_for(principal.subscription_tier)
        if quota.is_unbounded:
            return

        result = self.db.execute(
            update(User)
            .where(User.id == principal.id, User.units_used_this_cycle < quota.ceiling)
            .values(units_used_this_cycle=User.units_used_this_cycle + 1)
        )
        self.db.flush()
        if result.rowcount > 0:
            return

        metrics.inc_quota_denied(principal.subscription_tier.value)
        logger.info(
            "quota_exhausted",
            extra={
                "principal_id": principal.id,
                "tier": principal.subscription_tier.value,
                "ceiling": quota.ceiling,
            },
        )
        raise QuotaExhausted(
            tier=principal.subscription_tier.value,
            ceiling=quota.ceiling,
            upgrade_options=upgrade_options(),
        )

    def reset_cycle(self, principal_id: str, now: datetime | None = None) -> bool:
        """Explicit cycle reset event: used -> 0. Commits. Returns False if the user is gone."""
        now = now or datetime.now(timezone.utc)
        result = self.db.execute(
            update(User)
            .where(User.id == principal_id)
            .values(units_used_this_cycle=0, cycle_started_at=now)
        )
        self.db.commit()
        if result.rowcount == 0:
            return False
        logger.info("quota_cycle_reset", extra={"principal_id": principal_id})
        return True

    def principals_due_for_reset(self, cycle_days: int, now: datetime | None = None) -> list[str]:
        """Ids whose rolling cycle started at least cycle_days ago."""
        if cycle_days <= 0:
            return []
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=cycle_days)
        rows = (
            self.db.query(User.id)
            .filter(User.cycle_started_at <= cutoff)
            .all()
        )
        return [row[0] for row in rows]
