"""
Quota config: typed wrappers over directrent.core.config for tier ceilings and upgrade prices.
"""
from __future__ import annotations

from directrent.core.config import settings
from directrent.domain.enums import UNLIMITED, SubscriptionTier, Unbounded


def ceiling_for(tier: SubscriptionTier) -> int | Unbounded:
    """Units per cycle for a tier. SUPERUSER has no ceiling."""
    if tier == SubscriptionTier.SUPERUSER:
        return UNLIMITED
    if tier == SubscriptionTier.RELAX:
        return settings.quota_relax_ceiling
    if tier == SubscriptionTier.BASIC:
        return settings.quota_basic_ceiling
    return settings.quota_free_ceiling


def remaining_units(tier: SubscriptionTier, used: int) -> int | Unbounded:
    ceiling = ceiling_for(tier)
    if ceiling is UNLIMITED:
        return UNLIMITED
    return max(0, ceiling - (used or 0))


def get_cycle_days() -> int:
    return settings.quota_cycle_days


def upgrade_options() -> list[dict]:
    """Paid tiers offered in the QuotaExhausted prompt."""
    symbol = settings.currency_symbol
    return [
        {
            "tier": SubscriptionTier.BASIC.value,
            "price": settings.subscription_price_basic,
            "contacts": settings.quota_basic_ceiling,
            "currency": symbol,
        },
        {
            "tier": SubscriptionTier.RELAX.value,
            "price": settings.subscription_price_relax,
            "contacts": settings.quota_relax_ceiling,
            "currency": symbol,
        },
        {
            "tier": SubscriptionTier.SUPERUSER.value,
            "price": settings.subscription_price_superuser,
            "contacts": "Unlimited",
            "currency": symbol,
        },
    ]
