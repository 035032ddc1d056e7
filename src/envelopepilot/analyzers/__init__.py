"""
EnvelopePilot Analyzers — pure computation modules.

Each analyzer reads a ledger snapshot and returns derived values. Only
the envelope budgeter writes, and only to ``snapshot.budgets``.
"""

from envelopepilot.analyzers.debt import (
    DebtOverview,
    DebtPayoffPlanner,
    DebtPlanEntry,
    StrategyComparison,
    resolve_strategy,
)
from envelopepilot.analyzers.envelopes import (
    BudgetSummary,
    CategoryGroups,
    EnvelopeBudgeter,
    EnvelopeStatus,
    EnvelopeUtilization,
    GroupTotal,
    MonthlyOverview,
    merge_budget_records,
    previous_month,
)
from envelopepilot.analyzers.goals import (
    GoalNotFoundError,
    GoalProgress,
    GoalsSummary,
    GoalTracker,
)
from envelopepilot.analyzers.net_worth import NetWorth, NetWorthCalculator

__all__ = [
    # Envelopes
    "EnvelopeBudgeter",
    "BudgetSummary",
    "MonthlyOverview",
    "CategoryGroups",
    "GroupTotal",
    "EnvelopeUtilization",
    "EnvelopeStatus",
    "merge_budget_records",
    "previous_month",
    # Debt
    "DebtPayoffPlanner",
    "DebtPlanEntry",
    "DebtOverview",
    "StrategyComparison",
    "resolve_strategy",
    # Goals
    "GoalTracker",
    "GoalProgress",
    "GoalsSummary",
    "GoalNotFoundError",
    # Net worth
    "NetWorthCalculator",
    "NetWorth",
]
