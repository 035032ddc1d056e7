"""
Ledger data models — accounts, categories, transactions, envelopes, goals.

A ``LedgerSnapshot`` is what the store hands to the engine and what the
engine mutates when money is assigned. Field names are snake_case in
Python and camelCase on the wire so snapshots written by the JSON store
load unchanged.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class AccountType(str, Enum):
    """Kinds of accounts a ledger can hold."""

    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT_CARD = "credit_card"
    LOAN = "loan"
    INVESTMENT = "investment"
    CASH = "cash"


class TransactionType(str, Enum):
    """Direction of money movement."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class GoalType(str, Enum):
    """How a savings goal is measured."""

    TARGET_BALANCE = "target_balance"
    MONTHLY_FUNDING = "monthly_funding"
    TARGET_DATE = "target_date"


class DebtStrategy(str, Enum):
    """Debt payoff ordering."""

    SNOWBALL = "snowball"  # Smallest balance first
    AVALANCHE = "avalanche"  # Highest interest rate first
    CUSTOM = "custom"


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Coerce a caller-supplied amount to ``Decimal`` without binary float residue."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def month_key(d: date) -> str:
    """Format a date as its YYYY-MM month."""
    return f"{d.year}-{d.month:02d}"


class LedgerModel(BaseModel):
    """Base for every ledger record: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Account(LedgerModel):
    """A bank, card, loan or cash account. Liabilities carry negative balances."""

    id: str
    name: str
    type: AccountType
    balance: Decimal = Decimal("0")
    interest_rate: Decimal | None = Field(default=None, description="Annual rate in percent")
    credit_limit: Decimal | None = None
    is_active: bool = True

    @property
    def is_debt(self) -> bool:
        return self.type in (AccountType.CREDIT_CARD, AccountType.LOAN)


class Category(LedgerModel):
    """An envelope category."""

    id: str
    label: str
    icon: str = ""
    type: TransactionType = TransactionType.EXPENSE
    color: str = ""
    is_debt: bool = False
    is_goal: bool = False


class Transaction(LedgerModel):
    """A single ledger entry. ``amount`` is a magnitude; ``type`` carries the sign."""

    id: str
    type: TransactionType
    account_id: str = ""
    category_id: str
    amount: Decimal
    description: str = ""
    date: date
    created_at: datetime | None = None
    is_reconciled: bool = False

    @property
    def month(self) -> str:
        return month_key(self.date)

    @property
    def signed_amount(self) -> Decimal:
        """Effect on the category envelope: expenses reduce it, everything else adds."""
        if self.type == TransactionType.EXPENSE:
            return -self.amount
        return self.amount


class Budget(LedgerModel):
    """Envelope assignment for one (category, month) pair."""

    id: str = ""
    category_id: str
    month: str = Field(description="YYYY-MM")
    assigned: Decimal = Decimal("0")
    activity: Decimal = Decimal("0")
    available: Decimal = Decimal("0")


class Goal(LedgerModel):
    """A savings goal attached to an ``is_goal`` category."""

    id: str
    category_id: str
    name: str
    type: GoalType = GoalType.TARGET_BALANCE
    target_amount: Decimal
    target_date: date | None = None
    monthly_funding: Decimal | None = None
    current_amount: Decimal = Decimal("0")
    is_active: bool = True
    created_at: datetime | None = None

    @field_validator("target_date", mode="before")
    @classmethod
    def truncate_timestamp(cls, value: Any) -> Any:
        # The browser store writes goal dates as full ISO timestamps.
        if isinstance(value, str) and len(value) > 10:
            return value[:10]
        return value


class LedgerSettings(LedgerModel):
    """User preferences stored alongside the ledger."""

    currency: str = "USD"
    date_format: str = "MM/dd/yyyy"
    first_day_of_week: int = 0
    debt_strategy: DebtStrategy = DebtStrategy.AVALANCHE
    auto_assign_priority: list[str] = Field(default_factory=list)


class LedgerSnapshot(LedgerModel):
    """Complete ledger held in memory by the caller.

    The engine reads every collection and appends to / updates
    ``budgets`` in place.
    """

    accounts: list[Account] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    budgets: list[Budget] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)
    settings: LedgerSettings = Field(default_factory=LedgerSettings)

    def get_category(self, category_id: str) -> Category | None:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def get_goal(self, goal_id: str) -> Goal | None:
        for goal in self.goals:
            if goal.id == goal_id:
                return goal
        return None

    def get_budget(self, category_id: str, month: str) -> Budget | None:
        for budget in self.budgets:
            if budget.category_id == category_id and budget.month == month:
                return budget
        return None

    def budgets_for_month(self, month: str) -> list[Budget]:
        return [b for b in self.budgets if b.month == month]
