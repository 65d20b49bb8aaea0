"""
PayoutLedger: provider balances and payout requests.

Responsibilities:
- Validation of a payout request (first violation wins, nothing mutated)
- Funds lock: balance debit and PENDING request creation in one transaction
- Scheduling settlement after commit
- Balance + history reads
"""
import logging
import secrets
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from uuid import uuid4

from sqlalchemy import update
from sqlalchemy.orm import Session

from directrent.core.config import settings
from directrent.core.errors import InsufficientFunds, PayoutNotFound, PayoutValidationError
from directrent.db.transaction import run_atomic
from directrent.domain.enums import PayoutMethod, PayoutStatus
from directrent.models.payout_request import PayoutRequest
from directrent.models.provider_balance import ProviderBalance
from directrent.services.payouts.models import PayoutHistory, PayoutView
from directrent.services.payouts.scheduler import SettlementScheduler
from directrent.utils.metrics import metrics

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def generate_reference() -> str:
    return f"REF-{secrets.token_hex(5).upper()}"


def validate_payout_fields(
    provider_id: str,
    amount,
    method,
    account_number,
    account_name,
) -> tuple[Decimal, PayoutMethod, str, str]:
    """Checks amount, method, accountNumber, accountName, then providerId.

    Raises PayoutValidationError on the first violation. Amounts with more than
    two decimal places are rejected rather than rounded.
    """
    if isinstance(amount, bool):
        raise PayoutValidationError("amount", "Amount must be a number")
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, TypeError, ValueError):
        raise PayoutValidationError("amount", "Amount must be a number")
    if not value.is_finite():
        raise PayoutValidationError("amount", "Amount must be a number")
    if value < settings.payout_min_amount:
        raise PayoutValidationError(
            "amount", f"Amount must be at least {settings.payout_min_amount}"
        )
    if value > settings.payout_max_amount:
        raise PayoutValidationError(
            "amount", f"Amount must be at most {settings.payout_max_amount}"
        )
    if value != value.quantize(CENT):
        raise PayoutValidationError("amount", "Amount must have at most 2 decimal places")

    try:
        payout_method = PayoutMethod(method)
    except (TypeError, ValueError):
        allowed = ", ".join(m.value for m in PayoutMethod)
        raise PayoutValidationError("method", f"Method must be one of {allowed}")

    number = account_number.strip() if isinstance(account_number, str) else ""
    if len(number) < settings.payout_account_number_min_length:
        raise PayoutValidationError(
            "accountNumber",
            f"Account number must be at least {settings.payout_account_number_min_length} characters",
        )

    name = account_name.strip() if isinstance(account_name, str) else ""
    if len(name) < settings.payout_account_name_min_length:
        raise PayoutValidationError(
            "accountName",
            f"Account name must be at least {settings.payout_account_name_min_length} characters",
        )

    if not provider_id or not isinstance(provider_id, str):
        raise PayoutValidationError("providerId", "Provider id is required")

    return value.quantize(CENT), payout_method, number, name


def add_to_balance(db: Session, provider_id: str, amount: Decimal) -> Decimal:
    """In-place increment, creating the row on first credit. Caller commits."""
    result = db.execute(
        update(ProviderBalance)
        .where(ProviderBalance.provider_id == provider_id)
        .values(available_amount=ProviderBalance.available_amount + amount)
    )
    if result.rowcount == 0:
        db.add(ProviderBalance(provider_id=provider_id, available_amount=amount))
    db.flush()
    return Decimal(
        db.query(ProviderBalance.available_amount)
        .filter(ProviderBalance.provider_id == provider_id)
        .scalar()
    )


class PayoutLedger:
    def __init__(self, db: Session, scheduler: SettlementScheduler | None = None):
        self.db = db
        self.scheduler = scheduler or SettlementScheduler()

    # ------------------------------------------------------------------
    # Balance
    # ------------------------------------------------------------------

    def get_balance(self, provider_id: str) -> Decimal:
        amount = (
            self.db.query(ProviderBalance.available_amount)
            .filter(ProviderBalance.provider_id == provider_id)
            .scalar()
        )
        return Decimal(amount) if amount is not None else ZERO

    def _debit(self, provider_id: str, value: Decimal) -> bool:
        """Conditional in-place decrement; False when the row is missing or short of funds."""
        result = self.db.execute(
            update(ProviderBalance)
            .where(
                ProviderBalance.provider_id == provider_id,
                ProviderBalance.available_amount >= value,
            )
            .values(available_amount=ProviderBalance.available_amount - value)
        )
        return result.rowcount == 1

    def credit_earnings(self, provider_id: str, amount) -> Decimal:
        """Add earned funds to a provider's balance. Returns the new balance."""
        value = Decimal(str(amount)).quantize(CENT)
        if value <= 0:
            raise PayoutValidationError("amount", "Credit amount must be positive")

        def unit() -> Decimal:
            new_balance = add_to_balance(self.db, provider_id, value)
            self.db.commit()
            return new_balance

        new_balance = run_atomic(self.db, unit, operation="provider_credit")
        logger.info(
            "provider_balance_credited",
            extra={"provider_id": provider_id, "amount": str(value), "new_balance": str(new_balance)},
        )
        return new_balance

    # ------------------------------------------------------------------
    # Payout request (funds lock)
    # ------------------------------------------------------------------

    def request_payout(
        self,
        provider_id: str,
        amount,
        method,
        account_number,
        account_name,
    ) -> PayoutView:
        """Raises PayoutValidationError, InsufficientFunds or ConsistencyFault."""
        value, payout_method, number, name = validate_payout_fields(
            provider_id, amount, method, account_number, account_name
        )

        def unit() -> PayoutView:
            if not self._debit(provider_id, value):
                raise InsufficientFunds(self.get_balance(provider_id))

            payout = PayoutRequest(
                id=str(uuid4()),
                provider_id=provider_id,
                amount=value,
                method=payout_method.value,
                account_number=number,
                account_name=name,
                status=PayoutStatus.PENDING.value,
                reference=generate_reference(),
                created_at=datetime.now(timezone.utc),
            )
            self.db.add(payout)
            self.db.flush()
            view = PayoutView.from_row(payout)
            self.db.commit()
            return view

        try:
            view = run_atomic(self.db, unit, operation="payout_request")
        except InsufficientFunds as e:
            metrics.inc_payout_request(payout_method.value, "INSUFFICIENT_FUNDS")
            logger.info(
                "payout_insufficient_funds",
                extra={
                    "provider_id": provider_id,
                    "amount": str(value),
                    "current_balance": str(e.current_balance),
                },
            )
            raise

        metrics.inc_payout_request(payout_method.value, "CREATED", float(value))
        logger.info(
            "payout_requested",
            extra={
                "provider_id": provider_id,
                "payout_id": view.id,
                "amount": str(value),
                "payout_method": payout_method.value,
                "reference": view.reference,
            },
        )
        self.scheduler.schedule(view.id)
        return view

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, payout_id: str) -> PayoutView:
        row = self.db.query(PayoutRequest).filter(PayoutRequest.id == payout_id).one_or_none()
        if row is None:
            raise PayoutNotFound(payout_id)
        return PayoutView.from_row(row)

    def history(self, provider_id: str) -> PayoutHistory:
        """Balance, then requests newest first.

        The balance is read before the list: any debit it reflects was committed
        together with its request, so the request is in the list too.
        """
        balance = self.get_balance(provider_id)
        rows = (
            self.db.query(PayoutRequest)
            .filter(PayoutRequest.provider_id == provider_id)
            .order_by(PayoutRequest.created_at.desc(), PayoutRequest.id.desc())
            .all()
        )
        return PayoutHistory(
            available_balance=balance,
            payouts=[PayoutView.from_row(r) for r in rows],
        )
