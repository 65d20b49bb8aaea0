"""Shared fixtures: in-memory SQLite session and row factories."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from directrent.db.base import Base
from directrent.models.contact_unlock import ContactUnlock  # noqa: F401
from directrent.models.payout_request import PayoutRequest  # noqa: F401
from directrent.models.property import Property
from directrent.models.provider_balance import ProviderBalance
from directrent.models.user import User


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make(user_id, role="TENANT", tier="FREE", expires_in_days=None, units_used=0):
        counter["n"] += 1
        expires_at = None
        if expires_in_days is not None:
            expires_at = datetime.now(timezone.utc) + timedelta(days=expires_in_days)
        user = User(
            id=user_id,
            phone=f"02400000{counter['n']:02d}",
            full_name=f"User {user_id}",
            role=role,
            subscription_tier=tier,
            subscription_expires_at=expires_at,
            units_used_this_cycle=units_used,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def make_property(db_session):
    def _make(property_id, owner_id, title=None):
        prop = Property(
            id=property_id,
            owner_id=owner_id,
            title=title or f"Listing {property_id}",
            city="Accra",
            neighborhood="Osu",
        )
        db_session.add(prop)
        db_session.commit()
        return prop

    return _make


@pytest.fixture
def set_balance(db_session):
    def _set(provider_id, amount):
        row = ProviderBalance(provider_id=provider_id, available_amount=Decimal(str(amount)))
        db_session.add(row)
        db_session.commit()
        return row

    return _set


@pytest.fixture
def scheduler():
    sched = MagicMock()
    sched.schedule.return_value = True
    return sched
