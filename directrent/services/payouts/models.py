"""
DTO payouts: PayoutView (one request, detached from the session), PayoutHistory, SettlementOutcome.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from directrent.domain.enums import PayoutMethod, PayoutStatus
from directrent.models.payout_request import PayoutRequest


class PayoutView(BaseModel):
    id: str
    provider_id: str
    amount: Decimal
    method: PayoutMethod
    account_number: str
    account_name: str
    status: PayoutStatus
    reference: str
    created_at: datetime
    processing_at: datetime | None = None
    completed_at: datetime | None = None
    failure_reason: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def from_row(cls, row: PayoutRequest) -> "PayoutView":
        return cls(
            id=row.id,
            provider_id=row.provider_id,
            amount=Decimal(row.amount),
            method=PayoutMethod(row.method),
            account_number=row.account_number,
            account_name=row.account_name,
            status=PayoutStatus(row.status),
            reference=row.reference,
            created_at=row.created_at,
            processing_at=row.processing_at,
            completed_at=row.completed_at,
            failure_reason=row.failure_reason,
        )


class PayoutHistory(BaseModel):
    available_balance: Decimal
    payouts: list[PayoutView]

    model_config = {"frozen": True}


class SettlementOutcome(BaseModel):
    """What the settlement backend reports: COMPLETED or FAILED (+ reason)."""

    status: PayoutStatus
    reason: str | None = None

    model_config = {"frozen": True}
