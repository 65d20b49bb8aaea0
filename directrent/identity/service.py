"""
IdentityService: bearer credential -> Principal, re-reading role/tier/units on every call.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from directrent.core.errors import PrincipalNotFound
from directrent.domain.enums import Role, SubscriptionTier, parse_enum
from directrent.identity.models import Principal
from directrent.identity.tokens import TokenVerifier
from directrent.models.user import User
from directrent.quota.config import remaining_units

logger = logging.getLogger(__name__)


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def effective_tier(user: User, now: datetime | None = None) -> SubscriptionTier:
    """Paid tiers count only while the subscription has not expired."""
    tier = parse_enum(SubscriptionTier, user.subscription_tier)
    if tier is None:
        logger.warning(
            "identity_unknown_tier",
            extra={"principal_id": user.id, "tier": user.subscription_tier},
        )
        return SubscriptionTier.FREE
    if tier == SubscriptionTier.FREE:
        return tier
    now = now or datetime.now(timezone.utc)
    expires_at = _aware(user.subscription_expires_at)
    if expires_at is None or expires_at <= now:
        return SubscriptionTier.FREE
    return tier


def build_principal(user: User, now: datetime | None = None) -> Principal:
    role = parse_enum(Role, user.role)
    if role is None:
        logger.warning("identity_unknown_role", extra={"principal_id": user.id, "role": user.role})
        role = Role.TENANT
    tier = effective_tier(user, now)
    used = user.units_used_this_cycle or 0
    return Principal(
        id=user.id,
        role=role,
        subscription_tier=tier,
        units_used=used,
        free_units_remaining=remaining_units(tier, used),
        subscription_expires_at=_aware(user.subscription_expires_at),
    )


class IdentityService:
    def __init__(self, db: Session, verifier: TokenVerifier | None = None):
        self.db = db
        self.verifier = verifier or TokenVerifier()

    def resolve(self, credential: str) -> Principal:
        """Raises InvalidCredential, ExpiredCredential or PrincipalNotFound."""
        claims = self.verifier.verify(credential)
        user = self.db.query(User).filter(User.id == claims.subject_id).one_or_none()
        if user is None:
            logger.info("identity_principal_not_found", extra={"principal_id": claims.subject_id})
            raise PrincipalNotFound("User not found")
        return build_principal(user)
