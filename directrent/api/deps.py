"""
FastAPI dependencies: bearer credential -> Principal, role/tier guards.
"""
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from directrent.core.errors import InsufficientRole, InsufficientTier, InvalidCredential
from directrent.db.session import get_db
from directrent.domain.enums import Role, SubscriptionTier
from directrent.identity.models import Principal
from directrent.identity.policy import has_role, has_tier
from directrent.identity.service import IdentityService

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Principal:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise InvalidCredential("No token provided")
    return IdentityService(db).resolve(credentials.credentials)


def require_role(*roles: Role):
    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not has_role(principal, roles):
            raise InsufficientRole([r.value for r in roles], principal.role.value)
        return principal

    return dependency


def require_tier(*tiers: SubscriptionTier):
    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not has_tier(principal, tiers):
            raise InsufficientTier([t.value for t in tiers], principal.subscription_tier.value)
        return principal

    return dependency
