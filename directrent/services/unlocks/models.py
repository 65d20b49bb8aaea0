"""
DTO unlocks: UnlockResult (unlock), UnlockedContact (list), UnlockState (status).
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from directrent.domain.enums import SubscriptionTier, Unbounded


class UnlockStatus(str, Enum):
    UNLOCKED = "UNLOCKED"
    ALREADY_UNLOCKED = "ALREADY_UNLOCKED"


class OwnerContact(BaseModel):
    id: str
    phone: str
    full_name: str | None = None

    model_config = {"frozen": True}


class UnlockResult(BaseModel):
    """Fresh and repeated unlocks carry the same payload; only `status` differs."""

    status: UnlockStatus
    target_id: str
    unlocked_at: datetime | None = None
    owner: OwnerContact | None = None
    units_remaining: int | Unbounded = 0

    model_config = {"frozen": True}


class UnlockedContact(BaseModel):
    target_id: str
    title: str
    city: str | None = None
    neighborhood: str | None = None
    unlocked_at: datetime
    owner: OwnerContact | None = None

    model_config = {"frozen": True}


class UnlockState(BaseModel):
    target_id: str
    is_unlocked: bool
    units_remaining: int | Unbounded
    subscription_tier: SubscriptionTier
    subscription_active: bool

    model_config = {"frozen": True}
