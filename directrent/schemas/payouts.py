from datetime import datetime
from typing import Any

from pydantic import Field

from directrent.schemas.common import CamelModel


class PayoutRequestIn(CamelModel):
    """All fields are checked in PayoutLedger, which reports the first violation in order."""

    provider_id: Any = None
    amount: Any = None
    method: Any = None
    account_number: Any = None
    account_name: Any = None


class PayoutOut(CamelModel):
    id: str
    provider_id: str
    amount: float
    method: str
    account_number: str
    account_name: str
    status: str
    reference: str
    created_at: datetime
    processing_at: datetime | None = None
    completed_at: datetime | None = None
    failure_reason: str | None = None


class PayoutHistoryOut(CamelModel):
    available_balance: float
    payouts: list[PayoutOut]


class PayoutFailIn(CamelModel):
    reason: str = Field("manual_reconciliation", min_length=1, max_length=500)
