"""
DTO quota: TierQuota (static tier -> ceiling mapping entry).
"""
from __future__ import annotations

from pydantic import BaseModel

from directrent.domain.enums import UNLIMITED, SubscriptionTier, Unbounded


class TierQuota(BaseModel):
    tier: SubscriptionTier
    ceiling: int | Unbounded

    model_config = {"frozen": True}

    @property
    def is_unbounded(self) -> bool:
        return self.ceiling is UNLIMITED or self.ceiling == UNLIMITED
