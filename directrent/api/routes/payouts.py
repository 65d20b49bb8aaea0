from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from directrent.api.deps import get_current_principal, require_role
from directrent.core.errors import InsufficientRole
from directrent.db.session import get_db
from directrent.domain.enums import Role
from directrent.identity.models import Principal
from directrent.identity.policy import has_role
from directrent.schemas.payouts import PayoutFailIn, PayoutHistoryOut, PayoutOut, PayoutRequestIn
from directrent.services.payouts.models import PayoutView
from directrent.services.payouts.service import PayoutLedger
from directrent.services.payouts.settlement import SettlementService


router = APIRouter(prefix="/payouts", tags=["payouts"])


def _authorize_provider(principal: Principal, provider_id: str) -> None:
    """Admins act on any provider; a provider only on their own balance."""
    if has_role(principal, {Role.ADMIN}):
        return
    if has_role(principal, {Role.PROVIDER}) and principal.id == provider_id:
        return
    raise InsufficientRole([Role.PROVIDER.value, Role.ADMIN.value], principal.role.value)


def _payout_out(view: PayoutView) -> PayoutOut:
    return PayoutOut(
        id=view.id,
        provider_id=view.provider_id,
        amount=float(view.amount),
        method=view.method.value,
        account_number=view.account_number,
        account_name=view.account_name,
        status=view.status.value,
        reference=view.reference,
        created_at=view.created_at,
        processing_at=view.processing_at,
        completed_at=view.completed_at,
        failure_reason=view.failure_reason,
    )


@router.get("/history/{provider_id}", response_model=PayoutHistoryOut)
def payout_history(
    provider_id: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> PayoutHistoryOut:
    _authorize_provider(principal, provider_id)
    history = PayoutLedger(db).history(provider_id)
    return PayoutHistoryOut(
        available_balance=float(history.available_balance),
        payouts=[_payout_out(p) for p in history.payouts],
    )


@router.post("/request", response_model=PayoutOut)
def request_payout(
    body: PayoutRequestIn = Body(...),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> PayoutOut:
    """Lock funds and create a PENDING payout; settlement runs in the background."""
    _authorize_provider(principal, body.provider_id)
    view = PayoutLedger(db).request_payout(
        provider_id=body.provider_id,
        amount=body.amount,
        method=body.method,
        account_number=body.account_number,
        account_name=body.account_name,
    )
    return _payout_out(view)


@router.post("/{payout_id}/fail", response_model=PayoutOut)
def fail_payout(
    payout_id: str,
    body: PayoutFailIn | None = Body(None),
    principal: Principal = Depends(require_role(Role.ADMIN)),
    db: Session = Depends(get_db),
) -> PayoutOut:
    """Manual reconciliation: mark a non-terminal payout FAILED and restore the funds."""
    ledger = PayoutLedger(db)
    ledger.get(payout_id)
    reason = body.reason if body is not None else PayoutFailIn().reason
    view = SettlementService(db).fail(payout_id, reason)
    if view is None:
        # Already terminal: report the state as it stands.
        return _payout_out(ledger.get(payout_id))
    return _payout_out(view)
