"""
Shared enums: roles, subscription tiers, payout methods and payout states.
Stored as their string values in the database.
"""
from enum import Enum


class Role(str, Enum):
    TENANT = "TENANT"
    LANDLORD = "LANDLORD"
    PROVIDER = "PROVIDER"
    ADMIN = "ADMIN"


class SubscriptionTier(str, Enum):
    FREE = "FREE"
    BASIC = "BASIC"
    RELAX = "RELAX"
    SUPERUSER = "SUPERUSER"


class PayoutMethod(str, Enum):
    MTN = "MTN"
    VODAFONE = "VODAFONE"
    AIRTELTIGO = "AIRTELTIGO"
    BANK = "BANK"


class PayoutStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_PAYOUT_STATES


TERMINAL_PAYOUT_STATES = frozenset({PayoutStatus.COMPLETED, PayoutStatus.FAILED})

# PENDING may go straight to a terminal state: PROCESSING is only recorded
# when a settlement backend reports progress.
ALLOWED_PAYOUT_TRANSITIONS: dict[PayoutStatus, frozenset[PayoutStatus]] = {
    PayoutStatus.PENDING: frozenset(
        {PayoutStatus.PROCESSING, PayoutStatus.COMPLETED, PayoutStatus.FAILED}
    ),
    PayoutStatus.PROCESSING: frozenset({PayoutStatus.COMPLETED, PayoutStatus.FAILED}),
    PayoutStatus.COMPLETED: frozenset(),
    PayoutStatus.FAILED: frozenset(),
}


def parse_enum(enum_cls, value, default=None):
    """Return enum_cls(value), or `default` when value is not a member."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        return default


class Unbounded(str, Enum):
    """Quota value for tiers without a ceiling."""

    UNLIMITED = "UNLIMITED"


UNLIMITED = Unbounded.UNLIMITED
