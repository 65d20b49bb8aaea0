"""
Authorization predicates. Pure functions, no I/O. Anything ambiguous is a deny.
"""
from __future__ import annotations

from collections.abc import Iterable

from directrent.domain.enums import Role, SubscriptionTier, parse_enum
from directrent.identity.models import Principal


def has_role(principal: Principal | None, allowed: Iterable[Role | str]) -> bool:
    if principal is None:
        return False
    wanted = {parse_enum(Role, r) for r in allowed} - {None}
    if not wanted:
        return False
    return principal.role in wanted


def has_tier(principal: Principal | None, allowed: Iterable[SubscriptionTier | str]) -> bool:
    if principal is None:
        return False
    wanted = {parse_enum(SubscriptionTier, t) for t in allowed} - {None}
    if not wanted:
        return False
    return principal.subscription_tier in wanted
