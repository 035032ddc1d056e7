"""
Debt Payoff Planning — rank debts by strategy and estimate payoff timelines.

Strategies:
- **Avalanche**: highest interest rate first (least interest paid).
- **Snowball**: smallest balance first (fastest early wins).

Minimum payments:
  Credit card = max(25, 2% of balance)
  Loan        = B·r·(1+r)^n / ((1+r)^n − 1), r = annual% / 1200, n = 120

Payoff time per debt is closed-form:
  months = ceil(−ln(1 − B·r/pmt) / ln(1+r))

The extra payment goes entirely to the first-ranked debt. When that debt
is paid off its payment does not roll over to the next one, so the plan
is a snapshot estimate rather than a month-by-month simulation.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal

from envelopepilot.analyzers.net_worth import NetWorthCalculator
from envelopepilot.config import EngineConfig
from envelopepilot.models.ledger import (
    Account,
    AccountType,
    DebtStrategy,
    LedgerSnapshot,
    to_decimal,
)

logger = logging.getLogger("envelopepilot.analyzers.debt")

ZERO = Decimal("0")
ONE = Decimal("1")
NEVER = math.inf
# Closed-form months carry precision noise (e.g. 120.0000000000000001).
MONTHS_QUANTUM = Decimal("1e-9")


def resolve_strategy(strategy: DebtStrategy | str) -> DebtStrategy:
    """Map a stored strategy to one the planner can rank by.

    ``custom`` (and anything unrecognised) plans as avalanche.
    """
    try:
        resolved = DebtStrategy(strategy)
    except ValueError:
        logger.warning("Unknown debt strategy %r, using avalanche", strategy)
        return DebtStrategy.AVALANCHE
    if resolved == DebtStrategy.CUSTOM:
        return DebtStrategy.AVALANCHE
    return resolved


@dataclass
class DebtPlanEntry:
    """One debt's place and timeline in a payoff plan."""

    account_id: str
    name: str
    balance: Decimal
    interest_rate: Decimal
    minimum_payment: Decimal
    payment: Decimal = ZERO  # minimum plus any extra applied
    payoff_order: int = 0
    months_to_payoff: int | float = 0
    total_interest: Decimal = ZERO

    @property
    def is_payable(self) -> bool:
        return self.months_to_payoff != NEVER


@dataclass
class DebtOverview:
    """Totals for the debt dashboard."""

    strategy: DebtStrategy
    extra_payment: Decimal
    total_debt: Decimal = ZERO
    total_minimum_payments: Decimal = ZERO
    total_interest: Decimal = ZERO
    time_to_payoff: int | float = 0
    interest_saved: Decimal = ZERO  # versus the same plan without extra payment
    net_worth: Decimal = ZERO
    plan: list[DebtPlanEntry] = field(default_factory=list)

    @property
    def debt_free_net_worth(self) -> Decimal:
        return self.net_worth + self.total_debt


@dataclass
class StrategyComparison:
    """Avalanche and snowball side by side for the same extra payment."""

    extra_payment: Decimal
    avalanche_months: int | float
    avalanche_interest: Decimal
    snowball_months: int | float
    snowball_interest: Decimal

    @property
    def recommended(self) -> DebtStrategy:
        if self.snowball_interest < self.avalanche_interest:
            return DebtStrategy.SNOWBALL
        return DebtStrategy.AVALANCHE

    @property
    def interest_difference(self) -> Decimal:
        return abs(self.avalanche_interest - self.snowball_interest)


def _plan_totals(plan: list[DebtPlanEntry]) -> tuple[int | float, Decimal]:
    months = max((entry.months_to_payoff for entry in plan), default=0)
    interest = sum((entry.total_interest for entry in plan), ZERO)
    return months, interest


class DebtPayoffPlanner:
    """
    Debt payoff planning over the ledger's credit card and loan accounts.

    Example usage:
        planner = DebtPayoffPlanner(snapshot)
        for debt in planner.calculate_payoff_plan(extra_payment=200, strategy="snowball"):
            print(debt.payoff_order, debt.name, debt.months_to_payoff)
    """

    def __init__(self, snapshot: LedgerSnapshot, config: EngineConfig | None = None):
        self.snapshot = snapshot
        self.config = config or EngineConfig()

    def debt_accounts(self) -> list[Account]:
        return [
            a for a in self.snapshot.accounts
            if a.type in (AccountType.CREDIT_CARD, AccountType.LOAN)
        ]

    def minimum_payment(self, account: Account) -> Decimal:
        balance = abs(account.balance)
        if account.type == AccountType.CREDIT_CARD:
            return max(
                self.config.credit_card_minimum_floor,
                balance * self.config.credit_card_minimum_rate,
            )
        return self.loan_payment(balance, account.interest_rate or ZERO)

    def loan_payment(self, balance: Decimal, annual_rate: Decimal, months: int | None = None) -> Decimal:
        """Fixed monthly payment that amortizes ``balance`` over ``months``."""
        n = months or self.config.loan_term_months
        r = annual_rate / 100 / 12
        if r == 0:
            return balance / n
        growth = (ONE + r) ** n
        return balance * r * growth / (growth - ONE)

    def payoff_time(
        self, balance: Decimal, annual_rate: Decimal, payment: Decimal
    ) -> tuple[int | float, Decimal]:
        """
        Months to clear ``balance`` at a fixed ``payment``, and interest paid.

        A payment that does not cover the monthly interest never pays the
        debt off: ``(inf, 0)``.
        """
        if payment <= 0:
            return NEVER, ZERO

        r = annual_rate / 100 / 12
        if r == 0:
            return math.ceil(balance / payment), ZERO

        remaining_ratio = ONE - balance * r / payment
        if remaining_ratio <= 0:
            return NEVER, ZERO

        raw_months = -remaining_ratio.ln() / (ONE + r).ln()
        months = math.ceil(raw_months.quantize(MONTHS_QUANTUM))
        total_interest = max(ZERO, payment * months - balance)
        return months, total_interest

    def calculate_payoff_plan(
        self,
        extra_payment: Decimal | int | str = 0,
        strategy: DebtStrategy | str = DebtStrategy.AVALANCHE,
    ) -> list[DebtPlanEntry]:
        """
        Rank debts by strategy and estimate each payoff.

        Args:
            extra_payment: Monthly amount on top of minimums, applied to
                the first-ranked debt only.
            strategy: ``avalanche`` or ``snowball``. ``custom`` is planned
                as avalanche.

        Returns:
            Plan entries in payoff order.
        """
        extra = to_decimal(extra_payment)
        strategy = resolve_strategy(strategy)

        plan = [
            DebtPlanEntry(
                account_id=account.id,
                name=account.name,
                balance=abs(account.balance),
                interest_rate=account.interest_rate or ZERO,
                minimum_payment=self.minimum_payment(account),
            )
            for account in self.debt_accounts()
        ]

        if strategy == DebtStrategy.AVALANCHE:
            plan.sort(key=lambda d: d.interest_rate, reverse=True)
        else:
            plan.sort(key=lambda d: d.balance)

        for index, debt in enumerate(plan):
            debt.payoff_order = index + 1
            debt.payment = debt.minimum_payment + (extra if index == 0 else ZERO)
            debt.months_to_payoff, debt.total_interest = self.payoff_time(
                debt.balance, debt.interest_rate, debt.payment
            )

        logger.debug(
            "Built %s plan for %d debts with %s extra",
            strategy.value, len(plan), extra,
        )
        return plan

    def overview(
        self,
        extra_payment: Decimal | int | str = 0,
        strategy: DebtStrategy | str = DebtStrategy.AVALANCHE,
    ) -> DebtOverview:
        """Dashboard totals, including interest saved by the extra payment."""
        extra = to_decimal(extra_payment)
        strategy = resolve_strategy(strategy)
        plan = self.calculate_payoff_plan(extra, strategy)
        months, interest = _plan_totals(plan)
        _, baseline_interest = _plan_totals(self.calculate_payoff_plan(ZERO, strategy))

        return DebtOverview(
            strategy=strategy,
            extra_payment=extra,
            total_debt=sum((d.balance for d in plan), ZERO),
            total_minimum_payments=sum((d.minimum_payment for d in plan), ZERO),
            total_interest=interest,
            time_to_payoff=months,
            interest_saved=max(ZERO, baseline_interest - interest),
            net_worth=NetWorthCalculator(self.snapshot, self.config).calculate_net_worth().net_worth,
            plan=plan,
        )

    def compare_strategies(self, extra_payment: Decimal | int | str = 0) -> StrategyComparison:
        extra = to_decimal(extra_payment)
        avalanche_months, avalanche_interest = _plan_totals(
            self.calculate_payoff_plan(extra, DebtStrategy.AVALANCHE)
        )
        snowball_months, snowball_interest = _plan_totals(
            self.calculate_payoff_plan(extra, DebtStrategy.SNOWBALL)
        )
        return StrategyComparison(
            extra_payment=extra,
            avalanche_months=avalanche_months,
            avalanche_interest=avalanche_interest,
            snowball_months=snowball_months,
            snowball_interest=snowball_interest,
        )
