"""
DTO identity: TokenClaims (what the credential says) and Principal (who is calling, as of now).
"""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from directrent.domain.enums import Role, SubscriptionTier, Unbounded


class TokenClaims(BaseModel):
    """Verified claims. Only subject_id is trusted; tier and balance are re-read from the store."""

    subject_id: str
    issued_at: datetime | None = None
    expires_at: datetime | None = None

    model_config = {"frozen": True}


class Principal(BaseModel):
    """Authenticated caller, built per request from the current user row. Never cached."""

    id: str
    role: Role
    subscription_tier: SubscriptionTier = Field(
        ...,
        description="Effective tier: an expired paid subscription reads as FREE",
    )
    units_used: int = 0
    free_units_remaining: int | Unbounded = 0
    subscription_expires_at: datetime | None = None

    model_config = {"frozen": True}
