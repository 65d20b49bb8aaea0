"""
Error taxonomy shared by the identity, quota, unlock and payout layers.

AuthError      -> caller is rejected (401), never retried.
PolicyDenial   -> business rule said no; carries context for an actionable UI.
ValidationError-> malformed input rejected before any mutation (first violation wins).
ConsistencyFault -> lock/store failure; retried locally, then a generic 500.

Each error knows its HTTP status and stable `code`; api.errors turns them into
responses.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any


class DirectRentError(Exception):
    status_code: int = 500
    code: str = "InternalError"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message}


# ----- AuthError -----


class AuthError(DirectRentError):
    status_code = 401
    code = "AuthError"


class InvalidCredential(AuthError):
    code = "InvalidCredential"


class ExpiredCredential(AuthError):
    code = "ExpiredCredential"


class PrincipalNotFound(AuthError):
    code = "PrincipalNotFound"


# ----- PolicyDenial -----


class PolicyDenial(DirectRentError):
    status_code = 403
    code = "PolicyDenial"


class QuotaExhausted(PolicyDenial):
    code = "QuotaExhausted"

    def __init__(
        self,
        tier: str,
        ceiling: int,
        upgrade_options: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(
            "You have used all your contacts this cycle. Upgrade to continue."
        )
        self.tier = tier
        self.ceiling = ceiling
        self.upgrade_options = upgrade_options or []

    def to_payload(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "tier": self.tier,
            "ceiling": self.ceiling,
            "requiresSubscription": True,
            "subscriptionTiers": self.upgrade_options,
        }


class InsufficientFunds(PolicyDenial):
    status_code = 400
    code = "InsufficientFunds"

    def __init__(self, current_balance: Decimal) -> None:
        super().__init__("Insufficient funds")
        self.current_balance = current_balance

    def to_payload(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "currentBalance": float(self.current_balance),
        }


class InsufficientRole(PolicyDenial):
    code = "InsufficientRole"

    def __init__(self, required: list[str] | None = None, current: str | None = None) -> None:
        super().__init__("Insufficient permissions")
        self.required = required or []
        self.current = current

    def to_payload(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "requiredRoles": self.required,
        }


class InsufficientTier(PolicyDenial):
    code = "InsufficientTier"

    def __init__(self, required: list[str], current: str | None) -> None:
        super().__init__("Subscription required")
        self.required = required
        self.current = current

    def to_payload(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "requiredTiers": self.required,
            "currentTier": self.current,
        }


# ----- ValidationError -----


class PayoutValidationError(DirectRentError):
    status_code = 400
    code = "ValidationError"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.code, "field": self.field, "message": self.message}


# ----- Lookup -----


class TargetNotFound(DirectRentError):
    status_code = 404
    code = "TargetNotFound"

    def __init__(self, target_id: str) -> None:
        super().__init__("Property not found")
        self.target_id = target_id

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.code, "targetId": self.target_id}


class PayoutNotFound(DirectRentError):
    status_code = 404
    code = "PayoutNotFound"

    def __init__(self, payout_id: str) -> None:
        super().__init__("Payout request not found")
        self.payout_id = payout_id

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.code, "payoutId": self.payout_id}


# ----- ConsistencyFault -----


class ConsistencyFault(DirectRentError):
    status_code = 500
    code = "InternalError"

    def to_payload(self) -> dict[str, Any]:
        # No internal detail leaks to the caller.
        return {"error": self.code, "message": "An unexpected error occurred"}
