"""
UnlockEngine: landlord contact access, debiting at most one unit per (principal, property).

The existence check, the debit and the record insert run in one transaction
that starts by locking the principal's user row, so concurrent unlocks by the
same principal serialize and different principals never contend. Where the
store ignores row locks (SQLite) the debit is still a conditional UPDATE and
the UNIQUE (user_id, property_id) constraint still rejects a second record: a
loser that reaches the insert, or finds the last unit already spent on this
same pair, rolls back and reports ALREADY_UNLOCKED.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from directrent.core.errors import QuotaExhausted, TargetNotFound
from directrent.db.transaction import run_atomic
from directrent.domain.enums import SubscriptionTier
from directrent.identity.models import Principal
from directrent.models.contact_unlock import ContactUnlock
from directrent.models.property import Property
from directrent.models.user import User
from directrent.quota.ledger import QuotaLedger
from directrent.services.catalog.service import CatalogStore
from directrent.services.unlocks.models import (
    OwnerContact,
    UnlockedContact,
    UnlockResult,
    UnlockState,
    UnlockStatus,
)
from directrent.utils.metrics import metrics

logger = logging.getLogger(__name__)


class UnlockEngine:
    def __init__(
        self,
        db: Session,
        catalog: CatalogStore | None = None,
        quota: QuotaLedger | None = None,
    ):
        self.db = db
        self.catalog = catalog or CatalogStore(db)
        self.quota = quota or QuotaLedger(db)

    # ------------------------------------------------------------------
    # Unlock
    # ------------------------------------------------------------------

    def unlock(self, principal: Principal, target_id: str) -> UnlockResult:
        """Raises TargetNotFound, QuotaExhausted or ConsistencyFault."""
        if not self.catalog.exists(target_id):
            metrics.inc_unlock("NOT_FOUND")
            raise TargetNotFound(target_id)

        try:
            status, unlocked_at = run_atomic(
                self.db,
                lambda: self._unlock_once(principal, target_id),
                operation="contact_unlock",
            )
        except QuotaExhausted:
            metrics.inc_unlock("QUOTA_EXHAUSTED")
            raise

        metrics.inc_unlock(status.value)
        logger.info(
            "contact_unlock",
            extra={
                "principal_id": principal.id,
                "target_id": target_id,
                "outcome": status.value,
                "tier": principal.subscription_tier.value,
            },
        )
        return UnlockResult(
            status=status,
            target_id=target_id,
            unlocked_at=unlocked_at,
            owner=self._owner(target_id),
            units_remaining=self.quota.units_remaining(principal),
        )

    def _unlock_once(self, principal: Principal, target_id: str) -> tuple[UnlockStatus, datetime | None]:
        self.quota.lock_principal(principal.id)

        existing = self._find(principal.id, target_id)
        if existing is not None:
            unlocked_at = existing.unlocked_at
            self.db.commit()
            return UnlockStatus.ALREADY_UNLOCKED, unlocked_at

        try:
            self.quota.try_debit(principal)
        except QuotaExhausted:
            # The last unit may have gone to a concurrent unlock of this same pair.
            winner = self._find(principal.id, target_id)
            if winner is None:
                raise
            unlocked_at = winner.unlocked_at
            self.db.rollback()
            self._log_race_lost(principal.id, target_id)
            return UnlockStatus.ALREADY_UNLOCKED, unlocked_at

        unlocked_at = datetime.now(timezone.utc)
        self.db.add(
            ContactUnlock(
                user_id=principal.id,
                property_id=target_id,
                unlocked_at=unlocked_at,
            )
        )
        try:
            self.db.flush()
        except IntegrityError:
            # Concurrent winner already inserted this pair: drop our debit with it.
            self.db.rollback()
            self._log_race_lost(principal.id, target_id)
            winner = self._find(principal.id, target_id)
            return UnlockStatus.ALREADY_UNLOCKED, winner.unlocked_at if winner else None

        self.db.commit()
        return UnlockStatus.UNLOCKED, unlocked_at

    @staticmethod
    def _log_race_lost(principal_id: str, target_id: str) -> None:
        logger.info(
            "contact_unlock_race_lost",
            extra={"principal_id": principal_id, "target_id": target_id},
        )

    def _find(self, principal_id: str, target_id: str) -> ContactUnlock | None:
        return (
            self.db.query(ContactUnlock)
            .filter(
                ContactUnlock.user_id == principal_id,
                ContactUnlock.property_id == target_id,
            )
            .one_or_none()
        )

    def _owner(self, target_id: str) -> OwnerContact | None:
        contact = self.catalog.owner_contact(target_id)
        if not contact:
            return None
        return OwnerContact(id=contact["id"], phone=contact["phone"], full_name=contact["fullName"])

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def is_unlocked(self, principal_id: str, target_id: str) -> bool:
        return self._find(principal_id, target_id) is not None

    def list_unlocked(self, principal: Principal) -> list[UnlockedContact]:
        """Everything this principal has unlocked, newest first."""
        rows = (
            self.db.query(ContactUnlock, Property, User)
            .join(Property, Property.id == ContactUnlock.property_id)
            .outerjoin(User, User.id == Property.owner_id)
            .filter(ContactUnlock.user_id == principal.id)
            .order_by(ContactUnlock.unlocked_at.desc())
            .all()
        )
        return [
            UnlockedContact(
                target_id=prop.id,
                title=prop.title,
                city=prop.city,
                neighborhood=prop.neighborhood,
                unlocked_at=unlock.unlocked_at,
                owner=(
                    OwnerContact(id=owner.id, phone=owner.phone, full_name=owner.full_name)
                    if owner is not None
                    else None
                ),
            )
            for unlock, prop, owner in rows
        ]

    def status(self, principal: Principal, target_id: str) -> UnlockState:
        return UnlockState(
            target_id=target_id,
            is_unlocked=self.is_unlocked(principal.id, target_id),
            units_remaining=self.quota.units_remaining(principal),
            subscription_tier=principal.subscription_tier,
            subscription_active=principal.subscription_tier != SubscriptionTier.FREE,
        )
