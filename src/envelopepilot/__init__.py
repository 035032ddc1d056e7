"""
EnvelopePilot — envelope budgeting, debt payoff and savings goals.

Assign. Plan. Pay off.
A pure calculation engine over your ledger; storage stays yours.
"""

__version__ = "0.1.0"
__all__ = ["BudgetEngine", "GoalNotFoundError"]

from envelopepilot.analyzers.goals import GoalNotFoundError  # noqa: E402
from envelopepilot.engine import BudgetEngine  # noqa: E402
