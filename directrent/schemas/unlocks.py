from datetime import datetime

from pydantic import Field

from directrent.schemas.common import CamelModel


class UnlockIn(CamelModel):
    target_id: str = Field(..., min_length=1)


class OwnerOut(CamelModel):
    id: str
    phone: str
    full_name: str | None = None


class UnlockOut(CamelModel):
    status: str  # UNLOCKED / ALREADY_UNLOCKED
    target_id: str
    unlocked_at: datetime | None = None
    owner: OwnerOut | None = None
    units_remaining: int | str  # "UNLIMITED" for SUPERUSER


class UnlockedContactOut(CamelModel):
    target_id: str
    title: str
    city: str | None = None
    neighborhood: str | None = None
    unlocked_at: datetime
    owner: OwnerOut | None = None


class UnlockedListOut(CamelModel):
    unlocks: list[UnlockedContactOut]


class UnlockStatusOut(CamelModel):
    target_id: str
    is_unlocked: bool
    units_remaining: int | str
    subscription_tier: str
    subscription_active: bool
