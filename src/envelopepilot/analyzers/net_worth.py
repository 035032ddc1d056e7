"""
Net Worth & Analytics — balance sheet totals and age of money.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from envelopepilot.config import EngineConfig
from envelopepilot.models.ledger import LedgerSnapshot, TransactionType

logger = logging.getLogger("envelopepilot.analyzers.net_worth")

ZERO = Decimal("0")


@dataclass
class NetWorth:
    """Assets, liabilities and per-account balances."""

    assets: Decimal = ZERO
    liabilities: Decimal = ZERO
    account_breakdown: dict[str, Decimal] = field(default_factory=dict)  # keyed by account name

    @property
    def net_worth(self) -> Decimal:
        return self.assets - self.liabilities


class NetWorthCalculator:
    """Ledger-wide analytics."""

    def __init__(self, snapshot: LedgerSnapshot, config: EngineConfig | None = None):
        self.snapshot = snapshot
        self.config = config or EngineConfig()

    def calculate_net_worth(self) -> NetWorth:
        result = NetWorth()
        for account in self.snapshot.accounts:
            # Duplicate names: the later account wins in the breakdown.
            result.account_breakdown[account.name] = account.balance
            if account.balance >= 0:
                result.assets += account.balance
            else:
                result.liabilities += abs(account.balance)
        return result

    def age_of_money(self, reference_date: date | None = None) -> int:
        """
        Days between the average income date and the average expense date
        over the trailing window (90 days by default).

        Returns 0 when the window has no income or no expenses.
        """
        ref = reference_date or date.today()
        cutoff = ref - timedelta(days=self.config.age_of_money_window_days)

        income_days: list[int] = []
        expense_days: list[int] = []
        for txn in self.snapshot.transactions:
            if txn.date < cutoff:
                continue
            if txn.type == TransactionType.INCOME:
                income_days.append(txn.date.toordinal())
            elif txn.type == TransactionType.EXPENSE:
                expense_days.append(txn.date.toordinal())

        if not income_days or not expense_days:
            return 0

        mean_income = Decimal(sum(income_days)) / len(income_days)
        mean_expense = Decimal(sum(expense_days)) / len(expense_days)
        days = int((mean_expense - mean_income).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

        logger.debug("Age of money as of %s: %d days", ref, days)
        return max(0, days)
