"""
EnvelopePilot — Budget calculation engine.

The BudgetEngine is the single entry point callers use: build it from a
ledger snapshot, call operations per user action, merge what comes back
into the store. It never persists anything itself.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from decimal import Decimal

from envelopepilot.analyzers.debt import (
    DebtOverview,
    DebtPayoffPlanner,
    DebtPlanEntry,
    StrategyComparison,
)
from envelopepilot.analyzers.envelopes import (
    BudgetSummary,
    CategoryGroups,
    EnvelopeBudgeter,
    EnvelopeStatus,
    EnvelopeUtilization,
    GroupTotal,
    MonthlyOverview,
)
from envelopepilot.analyzers.goals import GoalProgress, GoalsSummary, GoalTracker
from envelopepilot.analyzers.net_worth import NetWorth, NetWorthCalculator
from envelopepilot.config import EngineConfig
from envelopepilot.models.ledger import Account, Budget, DebtStrategy, LedgerSnapshot

logger = logging.getLogger("envelopepilot")


class BudgetEngine:
    """Computation service over one in-memory ledger snapshot.

    Usage::

        from envelopepilot import BudgetEngine

        engine = BudgetEngine(snapshot)
        summary = engine.monthly_budget_summary("2025-03")
        with engine.transaction():
            engine.assign_money("rent", "2025-03", 1500)
        store.save(snapshot)

    Not safe for concurrent use: ``assign_money`` and
    ``auto_assign_money`` read-modify-write ``snapshot.budgets``. Use one
    engine per request or session.
    """

    def __init__(self, snapshot: LedgerSnapshot, config: EngineConfig | None = None) -> None:
        self.snapshot = snapshot
        self.config = config or EngineConfig()
        self.envelopes = EnvelopeBudgeter(snapshot, self.config)
        self.debts = DebtPayoffPlanner(snapshot, self.config)
        self.goals = GoalTracker(snapshot)
        self.analytics = NetWorthCalculator(snapshot, self.config)

    @contextmanager
    def transaction(self) -> Iterator[LedgerSnapshot]:
        """Apply a group of budget changes all-or-nothing.

        If the block raises, the budget collection is restored to what
        it was on entry and the exception propagates.
        """
        saved = [budget.model_copy() for budget in self.snapshot.budgets]
        try:
            yield self.snapshot
        except Exception:
            self.snapshot.budgets[:] = saved
            logger.warning("Budget changes rolled back (%d records restored)", len(saved))
            raise

    # -- Envelope budgeting ------------------------------------------------

    def available_to_budget(self, month: str) -> Decimal:
        return self.envelopes.available_to_budget(month)

    def monthly_budget_summary(self, month: str) -> BudgetSummary:
        return self.envelopes.monthly_budget_summary(month)

    def assign_money(self, category_id: str, month: str, amount: Decimal | int | str) -> Budget:
        return self.envelopes.assign_money(category_id, month, amount)

    def category_available(self, category_id: str, month: str) -> Decimal:
        return self.envelopes.category_available(category_id, month)

    def auto_assign_money(
        self,
        month: str,
        priority_category_ids: list[str] | None = None,
        reference_date: date | None = None,
    ) -> list[Budget]:
        return self.envelopes.auto_assign_money(month, priority_category_ids, reference_date)

    def monthly_overview(self, month: str) -> MonthlyOverview:
        return self.envelopes.monthly_overview(month)

    def category_status(self, category_id: str, month: str) -> EnvelopeStatus:
        return self.envelopes.category_status(category_id, month)

    def group_categories(self) -> CategoryGroups:
        return self.envelopes.group_categories()

    def group_totals(self, month: str) -> list[GroupTotal]:
        return self.envelopes.group_totals(month)

    def budget_utilization(self, month: str) -> list[EnvelopeUtilization]:
        return self.envelopes.budget_utilization(month)

    # -- Debt payoff -------------------------------------------------------

    def debt_accounts(self) -> list[Account]:
        return self.debts.debt_accounts()

    def calculate_debt_payoff_plan(
        self,
        extra_payment: Decimal | int | str = 0,
        strategy: DebtStrategy | str = DebtStrategy.AVALANCHE,
    ) -> list[DebtPlanEntry]:
        return self.debts.calculate_payoff_plan(extra_payment, strategy)

    def debt_overview(
        self,
        extra_payment: Decimal | int | str = 0,
        strategy: DebtStrategy | str | None = None,
    ) -> DebtOverview:
        """Debt dashboard totals; strategy defaults to the ledger setting."""
        return self.debts.overview(extra_payment, strategy or self.snapshot.settings.debt_strategy)

    def compare_debt_strategies(self, extra_payment: Decimal | int | str = 0) -> StrategyComparison:
        return self.debts.compare_strategies(extra_payment)

    # -- Goals -------------------------------------------------------------

    def calculate_goal_progress(self, goal_id: str, reference_date: date | None = None) -> GoalProgress:
        return self.goals.calculate_goal_progress(goal_id, reference_date)

    def goals_summary(self, reference_date: date | None = None) -> GoalsSummary:
        return self.goals.goals_summary(reference_date)

    # -- Net worth & analytics --------------------------------------------

    def calculate_net_worth(self) -> NetWorth:
        return self.analytics.calculate_net_worth()

    def age_of_money(self, reference_date: date | None = None) -> int:
        return self.analytics.age_of_money(reference_date)
