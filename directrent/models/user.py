from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, Integer, String

from directrent.db.base import Base
from directrent.domain.enums import Role, SubscriptionTier


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    phone = Column(String, unique=True, nullable=False, index=True)
    full_name = Column(String, nullable=True)
    role = Column(String, nullable=False, default=Role.TENANT.value)
    subscription_tier = Column(String, nullable=False, default=SubscriptionTier.FREE.value)
    subscription_expires_at = Column(DateTime(timezone=True), nullable=True)
    # Contact unlock units spent in the current cycle; reset only by QuotaLedger.reset_cycle.
    units_used_this_cycle = Column(Integer, nullable=False, default=0)
    cycle_started_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
