"""
Envelope Budgeting — assign income to category envelopes month by month.

Every category has an envelope per month whose balance carries forward:

    available(M) = available(M-1) + assigned(M) + activity(M)

The carry stops at the first earlier month without a Budget record.
Money free to assign ("to be budgeted") is this month's income plus
last month's unassigned income, less last month's overspending. That
carry reaches back one month only; callers needing a longer chain walk
forward month by month.

No persistence here: ``assign_money`` and ``auto_assign_money`` update
``snapshot.budgets`` in place and return the touched records.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from envelopepilot.analyzers.goals import GoalTracker
from envelopepilot.config import EngineConfig
from envelopepilot.models.ledger import (
    Budget,
    Category,
    LedgerSnapshot,
    TransactionType,
    to_decimal,
)

logger = logging.getLogger("envelopepilot.analyzers.envelopes")

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def previous_month(month: str) -> str:
    year, num = (int(part) for part in month.split("-"))
    if num == 1:
        return f"{year - 1}-12"
    return f"{year}-{num - 1:02d}"


class EnvelopeStatus(str, Enum):
    """Display state of an envelope for a month."""

    OVERSPENT = "overspent"  # available < 0
    SPENT = "spent"          # emptied after being funded
    AVAILABLE = "available"  # money left
    EMPTY = "empty"          # never funded


@dataclass
class BudgetSummary:
    """Assignment totals for one month."""

    month: str
    available_to_budget: Decimal
    total_assigned: Decimal

    @property
    def to_be_budgeted(self) -> Decimal:
        return self.available_to_budget - self.total_assigned

    @property
    def is_fully_assigned(self) -> bool:
        return self.to_be_budgeted == 0

    @property
    def is_over_assigned(self) -> bool:
        return self.to_be_budgeted < 0


@dataclass
class MonthlyOverview:
    """Cash in and out for a month, independent of envelopes."""

    month: str
    income: Decimal = ZERO
    expenses: Decimal = ZERO
    transaction_count: int = 0

    @property
    def balance(self) -> Decimal:
        return self.income - self.expenses


@dataclass
class CategoryGroups:
    """Categories split into the sections of the budget screen."""

    immediate: list[Category] = field(default_factory=list)
    true_expenses: list[Category] = field(default_factory=list)
    goals: list[Category] = field(default_factory=list)
    debts: list[Category] = field(default_factory=list)

    def sections(self) -> list[tuple[str, list[Category]]]:
        """(name, categories) pairs in display order."""
        return [
            ("immediate", self.immediate),
            ("true_expenses", self.true_expenses),
            ("goals", self.goals),
            ("debts", self.debts),
        ]


@dataclass
class GroupTotal:
    """Assigned and available money across one section of the budget screen."""

    group: str
    category_count: int = 0
    assigned: Decimal = ZERO
    available: Decimal = ZERO

    @property
    def is_overspent(self) -> bool:
        return self.available < 0


@dataclass
class EnvelopeUtilization:
    """How much of an envelope's assignment has been spent this month."""

    category_id: str
    label: str
    assigned: Decimal
    spent: Decimal

    @property
    def utilization(self) -> Decimal:
        """Spent as a percent of assigned. Can exceed 100."""
        if self.assigned <= 0:
            return ZERO
        return self.spent / self.assigned * HUNDRED

    @property
    def remaining(self) -> Decimal:
        return self.assigned - self.spent

    @property
    def is_over_budget(self) -> bool:
        return self.spent > self.assigned


def merge_budget_records(budgets: list[Budget], updates: list[Budget]) -> list[Budget]:
    """Return ``budgets`` with each update replacing its (category, month) twin or appended."""
    merged = list(budgets)
    for update in updates:
        for i, existing in enumerate(merged):
            if existing.category_id == update.category_id and existing.month == update.month:
                merged[i] = update
                break
        else:
            merged.append(update)
    return merged


class EnvelopeBudgeter:
    """
    Envelope-style budget math over a ledger snapshot.

    Example usage:
        budgeter = EnvelopeBudgeter(snapshot)
        summary = budgeter.monthly_budget_summary("2025-03")
        if summary.to_be_budgeted > 0:
            budgeter.assign_money("groceries", "2025-03", 400)
    """

    def __init__(self, snapshot: LedgerSnapshot, config: EngineConfig | None = None):
        self.snapshot = snapshot
        self.config = config or EngineConfig()

    # ------------------------------------------------------------------
    # Transaction totals
    # ------------------------------------------------------------------

    def monthly_income(self, month: str) -> Decimal:
        return sum(
            (t.amount for t in self.snapshot.transactions
             if t.type == TransactionType.INCOME and t.month == month),
            ZERO,
        )

    def monthly_expenses(self, month: str) -> Decimal:
        return sum(
            (t.amount for t in self.snapshot.transactions
             if t.type == TransactionType.EXPENSE and t.month == month),
            ZERO,
        )

    def category_activity(self, category_id: str, month: str) -> Decimal:
        """Signed effect of a category's transactions in a month."""
        return sum(
            (t.signed_amount for t in self.snapshot.transactions
             if t.category_id == category_id and t.month == month),
            ZERO,
        )

    def monthly_overview(self, month: str) -> MonthlyOverview:
        overview = MonthlyOverview(month=month)
        for txn in self.snapshot.transactions:
            if txn.month != month:
                continue
            overview.transaction_count += 1
            if txn.type == TransactionType.INCOME:
                overview.income += txn.amount
            elif txn.type == TransactionType.EXPENSE:
                overview.expenses += txn.amount
        return overview

    # ------------------------------------------------------------------
    # Envelope balances
    # ------------------------------------------------------------------

    def category_available(self, category_id: str, month: str) -> Decimal:
        """
        Envelope balance at the end of ``month``.

        Walks back through consecutive months that have a Budget record
        for the category, then sums assigned + activity forward. A month
        with no record of its own still counts its activity.
        """
        assigned_by_month = {
            b.month: b.assigned for b in self.snapshot.budgets if b.category_id == category_id
        }
        activity_by_month: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for txn in self.snapshot.transactions:
            if txn.category_id == category_id:
                activity_by_month[txn.month] += txn.signed_amount

        chain = [month]
        prior = previous_month(month)
        while prior in assigned_by_month:
            chain.append(prior)
            prior = previous_month(prior)

        available = ZERO
        for m in reversed(chain):
            available += assigned_by_month.get(m, ZERO) + activity_by_month[m]
        return available

    def overspending(self, month: str) -> Decimal:
        """Total of negative envelope balances in ``month``, as a positive amount."""
        total = ZERO
        for budget in self.snapshot.budgets_for_month(month):
            available = self.category_available(budget.category_id, month)
            total += max(ZERO, -available)
        return total

    def overspent_categories(self, month: str) -> list[str]:
        return [
            b.category_id
            for b in self.snapshot.budgets_for_month(month)
            if self.category_available(b.category_id, month) < 0
        ]

    def category_status(self, category_id: str, month: str) -> EnvelopeStatus:
        available = self.category_available(category_id, month)
        budget = self.snapshot.get_budget(category_id, month)
        if available < 0:
            return EnvelopeStatus.OVERSPENT
        if available == 0 and budget is not None and budget.assigned > 0:
            return EnvelopeStatus.SPENT
        if available > 0:
            return EnvelopeStatus.AVAILABLE
        return EnvelopeStatus.EMPTY

    def group_categories(self) -> CategoryGroups:
        groups = CategoryGroups()
        immediate_ids = set(self.config.immediate_category_ids)
        for category in self.snapshot.categories:
            if category.is_goal:
                groups.goals.append(category)
            if category.is_debt:
                groups.debts.append(category)
            if category.type != TransactionType.EXPENSE or category.is_debt or category.is_goal:
                continue
            if category.id in immediate_ids:
                groups.immediate.append(category)
            else:
                groups.true_expenses.append(category)
        return groups

    def group_totals(self, month: str) -> list[GroupTotal]:
        """Assigned and available totals per envelope group, in display order."""
        totals = []
        for name, categories in self.group_categories().sections():
            total = GroupTotal(group=name, category_count=len(categories))
            for category in categories:
                budget = self.snapshot.get_budget(category.id, month)
                if budget is not None:
                    total.assigned += budget.assigned
                total.available += self.category_available(category.id, month)
            totals.append(total)
        return totals

    def budget_utilization(self, month: str) -> list[EnvelopeUtilization]:
        """
        Spending against assignment for every funded envelope in ``month``.

        Only envelopes of known categories with money assigned are listed,
        most used first. ``spent`` counts expense transactions only.
        """
        rows = []
        for budget in self.snapshot.budgets_for_month(month):
            category = self.snapshot.get_category(budget.category_id)
            if category is None or budget.assigned <= 0:
                continue
            spent = sum(
                (t.amount for t in self.snapshot.transactions
                 if t.category_id == category.id
                 and t.type == TransactionType.EXPENSE
                 and t.month == month),
                ZERO,
            )
            rows.append(EnvelopeUtilization(category.id, category.label, budget.assigned, spent))
        rows.sort(key=lambda row: row.utilization, reverse=True)
        return rows

    # ------------------------------------------------------------------
    # Money to assign
    # ------------------------------------------------------------------

    def available_to_budget(self, month: str) -> Decimal:
        """
        Income this month, plus last month's unassigned income, less
        last month's overspending.
        """
        prior = previous_month(month)
        prior_assigned = sum((b.assigned for b in self.snapshot.budgets_for_month(prior)), ZERO)
        prior_unassigned = max(ZERO, self.monthly_income(prior) - prior_assigned)
        prior_overspending = self.overspending(prior)

        result = self.monthly_income(month) + prior_unassigned - prior_overspending
        logger.debug(
            "Available to budget for %s: %s (carry %s, overspent %s)",
            month, result, prior_unassigned, prior_overspending,
        )
        return result

    def monthly_budget_summary(self, month: str) -> BudgetSummary:
        total_assigned = sum((b.assigned for b in self.snapshot.budgets_for_month(month)), ZERO)
        return BudgetSummary(
            month=month,
            available_to_budget=self.available_to_budget(month),
            total_assigned=total_assigned,
        )

    def assign_money(self, category_id: str, month: str, amount: Decimal | int | str) -> Budget:
        """
        Move ``amount`` into (or, when negative, out of) an envelope.

        Creates the (category, month) record on first use; otherwise
        adds to the existing one. ``activity`` and ``available`` are
        refreshed on the returned record.
        """
        amount = to_decimal(amount)
        budget = self.snapshot.get_budget(category_id, month)

        if budget is None:
            budget = Budget(
                id=f"budget-{month}-{category_id}",
                category_id=category_id,
                month=month,
                assigned=amount,
            )
            self.snapshot.budgets.append(budget)
        else:
            budget.assigned += amount

        budget.activity = self.category_activity(category_id, month)
        budget.available = self.category_available(category_id, month)

        logger.info(
            "Assigned %s to %s for %s (assigned=%s, available=%s)",
            amount, category_id, month, budget.assigned, budget.available,
        )
        return budget

    def auto_assign_money(
        self,
        month: str,
        priority_category_ids: list[str] | None = None,
        reference_date: date | None = None,
    ) -> list[Budget]:
        """
        Spend down "to be budgeted" automatically.

        First covers every overspent envelope for the month, then tops up
        goal envelopes toward their recommended monthly amount in
        priority order. Never assigns more than was free to begin with.

        Args:
            month: Month to assign in (YYYY-MM).
            priority_category_ids: Goal categories in funding order.
                Defaults to the ledger's ``auto_assign_priority`` setting.
            reference_date: "Today" for goal projections.

        Returns:
            Budget records touched, in processing order.
        """
        if priority_category_ids is None:
            priority_category_ids = self.snapshot.settings.auto_assign_priority

        remaining = self.monthly_budget_summary(month).to_be_budgeted
        if remaining <= 0:
            logger.debug("Nothing to auto-assign for %s (to be budgeted: %s)", month, remaining)
            return []

        start = remaining
        touched: list[Budget] = []

        for category_id in self.overspent_categories(month):
            if remaining <= 0:
                break
            needed = abs(self.category_available(category_id, month))
            amount = min(needed, remaining)
            touched.append(self.assign_money(category_id, month, amount))
            remaining -= amount

        tracker = GoalTracker(self.snapshot)
        for category_id in priority_category_ids:
            if remaining <= 0:
                break
            category = self.snapshot.get_category(category_id)
            if category is None or not category.is_goal:
                continue
            goal = tracker.active_goal_for_category(category_id)
            if goal is None:
                continue

            recommended = tracker.calculate_goal_progress(goal.id, reference_date).recommended_monthly
            existing = self.snapshot.get_budget(category_id, month)
            current = existing.assigned if existing else ZERO
            amount = min(max(ZERO, recommended - current), remaining)
            if amount > 0:
                touched.append(self.assign_money(category_id, month, amount))
                remaining -= amount

        logger.info(
            "Auto-assigned %s of %s across %d envelopes for %s",
            start - remaining, start, len(touched), month,
        )
        return touched
