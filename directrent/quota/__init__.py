"""
Contact-unlock quota: tier ceilings and the per-principal unit ledger.
"""
from directrent.quota.config import ceiling_for, remaining_units, upgrade_options
from directrent.quota.ledger import QuotaLedger, quota_for
from directrent.quota.models import TierQuota

__all__ = [
    "QuotaLedger",
    "TierQuota",
    "ceiling_for",
    "quota_for",
    "remaining_units",
    "upgrade_options",
]
