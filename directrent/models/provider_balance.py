from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, DateTime, Numeric, String

from directrent.db.base import Base


class ProviderBalance(Base):
    __tablename__ = "provider_balances"
    __table_args__ = (CheckConstraint("available_amount >= 0", name="ck_provider_balance_non_negative"),)

    provider_id = Column(String, primary_key=True)
    available_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
