"""
ContactUnlock: append-only record of a tenant's access to a landlord contact.
(user_id, property_id) is unique: a pair is debited at most once.
"""
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, String, UniqueConstraint

from directrent.db.base import Base


class ContactUnlock(Base):
    __tablename__ = "contact_unlocks"
    __table_args__ = (UniqueConstraint("user_id", "property_id", name="uq_contact_unlock_pair"),)

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, nullable=False, index=True)
    property_id = Column(String, nullable=False, index=True)
    unlocked_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
