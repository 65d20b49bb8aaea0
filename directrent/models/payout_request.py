"""
PayoutRequest: a provider's withdrawal. Funds are already deducted from
ProviderBalance when the row is created (status PENDING). Only the settlement
service changes status; COMPLETED and FAILED are final.
"""
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, Numeric, String, Text

from directrent.db.base import Base
from directrent.domain.enums import PayoutStatus


class PayoutRequest(Base):
    __tablename__ = "payout_requests"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    provider_id = Column(String, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    method = Column(String, nullable=False)                 # MTN / VODAFONE / AIRTELTIGO / BANK
    account_number = Column(String, nullable=False)
    account_name = Column(String, nullable=False)
    status = Column(String, nullable=False, default=PayoutStatus.PENDING.value, index=True)
    reference = Column(String, unique=True, nullable=False)  # REF-XXXXXXXX, shown to the provider
    failure_reason = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    processing_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
