"""Tests for UnlockEngine: idempotent unlocks, quota debit, race loser, not found."""
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from directrent.core.errors import ConsistencyFault, QuotaExhausted, TargetNotFound
from directrent.domain.enums import Role, SubscriptionTier
from directrent.identity.models import Principal
from directrent.models.contact_unlock import ContactUnlock
from directrent.services.unlocks.models import UnlockStatus
from directrent.services.unlocks.service import UnlockEngine


def _principal(tier=SubscriptionTier.FREE, principal_id="t1"):
    return Principal(id=principal_id, role=Role.TENANT, subscription_tier=tier)


def _make_engine(db=None, exists=True, remaining=2):
    db = db or MagicMock()
    catalog = MagicMock()
    catalog.exists.return_value = exists
    catalog.owner_contact.return_value = {"id": "l1", "phone": "0201234567", "fullName": "Yaw"}
    quota = MagicMock()
    quota.units_remaining.return_value = remaining
    return UnlockEngine(db, catalog=catalog, quota=quota), db, quota


def _existing(unlocked_at=None):
    record = MagicMock()
    record.unlocked_at = unlocked_at or datetime(2026, 1, 5, tzinfo=timezone.utc)
    return record


class TestUnlock:
    def test_target_not_found(self):
        engine, db, quota = _make_engine(exists=False)
        with pytest.raises(TargetNotFound) as exc_info:
            engine.unlock(_principal(), "missing")
        assert exc_info.value.to_payload() == {"error": "TargetNotFound", "targetId": "missing"}
        quota.lock_principal.assert_not_called()
        quota.try_debit.assert_not_called()

    def test_fresh_unlock_debits_once(self):
        engine, db, quota = _make_engine()
        with patch.object(engine, "_find", return_value=None):
            result = engine.unlock(_principal(), "p1")

        assert result.status == UnlockStatus.UNLOCKED
        assert result.owner.phone == "0201234567"
        assert result.units_remaining == 2
        quota.lock_principal.assert_called_once_with("t1")
        quota.try_debit.assert_called_once()
        added = db.add.call_args[0][0]
        assert isinstance(added, ContactUnlock)
        assert added.user_id == "t1"
        assert added.property_id == "p1"
        db.commit.assert_called_once()

    def test_repeat_unlock_is_free(self):
        engine, db, quota = _make_engine()
        first = _existing()
        with patch.object(engine, "_find", return_value=first):
            result = engine.unlock(_principal(), "p1")

        assert result.status == UnlockStatus.ALREADY_UNLOCKED
        assert result.unlocked_at == first.unlocked_at
        assert result.owner.full_name == "Yaw"
        quota.try_debit.assert_not_called()
        db.add.assert_not_called()

    def test_race_loser_reports_already_unlocked(self):
        db = MagicMock()
        db.flush.side_effect = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))
        engine, db, quota = _make_engine(db=db)
        winner = _existing()

        with patch.object(engine, "_find", side_effect=[None, winner]):
            result = engine.unlock(_principal(), "p1")

        assert result.status == UnlockStatus.ALREADY_UNLOCKED
        assert result.unlocked_at == winner.unlocked_at
        db.rollback.assert_called_once()
        db.commit.assert_not_called()

    def test_quota_exhausted_creates_nothing(self):
        engine, db, quota = _make_engine()
        quota.try_debit.side_effect = QuotaExhausted(tier="FREE", ceiling=3)

        with patch.object(engine, "_find", return_value=None):
            with pytest.raises(QuotaExhausted):
                engine.unlock(_principal(), "p4")

        db.add.assert_not_called()
        db.commit.assert_not_called()
        db.rollback.assert_called_once()

    def test_last_unit_spent_on_same_pair_reports_already_unlocked(self):
        engine, db, quota = _make_engine()
        quota.try_debit.side_effect = QuotaExhausted(tier="FREE", ceiling=3)
        winner = _existing()

        with patch.object(engine, "_find", side_effect=[None, winner]):
            result = engine.unlock(_principal(), "p1")

        assert result.status == UnlockStatus.ALREADY_UNLOCKED
        assert result.unlocked_at == winner.unlocked_at
        db.add.assert_not_called()
        db.rollback.assert_called_once()
        db.commit.assert_not_called()

    @patch("directrent.db.transaction.settings")
    def test_lock_contention_becomes_consistency_fault(self, mock_settings):
        mock_settings.consistency_retry_attempts = 2
        engine, db, quota = _make_engine()
        quota.lock_principal.side_effect = OperationalError("SELECT", {}, Exception("lock wait timeout"))

        with pytest.raises(ConsistencyFault):
            engine.unlock(_principal(), "p1")

        assert quota.lock_principal.call_count == 2
        assert db.rollback.call_count == 2

    def test_retry_then_success(self):
        engine, db, quota = _make_engine()
        quota.lock_principal.side_effect = [OperationalError("SELECT", {}, Exception("deadlock")), None]

        with patch.object(engine, "_find", return_value=None):
            result = engine.unlock(_principal(), "p1")

        assert result.status == UnlockStatus.UNLOCKED
        quota.try_debit.assert_called_once()


class TestStatus:
    def test_status_free(self):
        engine, db, quota = _make_engine(remaining=1)
        with patch.object(engine, "_find", return_value=None):
            state = engine.status(_principal(), "p1")
        assert state.is_unlocked is False
        assert state.units_remaining == 1
        assert state.subscription_active is False

    def test_status_paid(self):
        engine, db, quota = _make_engine(remaining=10)
        with patch.object(engine, "_find", return_value=_existing()):
            state = engine.status(_principal(tier=SubscriptionTier.BASIC), "p1")
        assert state.is_unlocked is True
        assert state.subscription_tier == SubscriptionTier.BASIC
        assert state.subscription_active is True
