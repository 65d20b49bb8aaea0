"""
Settlement backends. The gateway is simulated: every payout completes.
A real mobile-money / bank integration implements SettlementBackend.settle.
"""
from abc import ABC, abstractmethod

from directrent.domain.enums import PayoutStatus
from directrent.services.payouts.models import PayoutView, SettlementOutcome


class SettlementBackend(ABC):
    name: str = "base"

    @abstractmethod
    def settle(self, payout: PayoutView) -> SettlementOutcome:
        """Return the terminal outcome for a payout. Must not touch the database."""


class SimulatedSettlementBackend(SettlementBackend):
    name = "simulated"

    def settle(self, payout: PayoutView) -> SettlementOutcome:
        return SettlementOutcome(status=PayoutStatus.COMPLETED)


def get_settlement_backend() -> SettlementBackend:
    return SimulatedSettlementBackend()
