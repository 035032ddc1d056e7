"""Tests for the envelope budgeting engine."""

from datetime import date
from decimal import Decimal

import pytest

from envelopepilot.analyzers.envelopes import (
    BudgetSummary,
    EnvelopeBudgeter,
    EnvelopeStatus,
    merge_budget_records,
    previous_month,
)
from envelopepilot.models.ledger import (
    Budget,
    Category,
    Goal,
    GoalType,
    LedgerSettings,
    LedgerSnapshot,
    Transaction,
    TransactionType,
    month_key,
)


def _txn(idx: int, txn_type: str, category_id: str, amount: str, day: str) -> Transaction:
    return Transaction(
        id=f"txn_{idx}",
        type=TransactionType(txn_type),
        account_id="checking",
        category_id=category_id,
        amount=Decimal(amount),
        date=date.fromisoformat(day),
    )


def _categories() -> list[Category]:
    return [
        Category(id="salary", label="Salary", type=TransactionType.INCOME),
        Category(id="housing", label="Housing"),
        Category(id="groceries", label="Groceries"),
        Category(id="dining", label="Dining Out"),
        Category(id="vacation", label="Vacation", is_goal=True),
        Category(id="visa-payment", label="Visa Payment", is_debt=True),
    ]


def _carry_ledger() -> LedgerSnapshot:
    """February has unassigned income and an overspent grocery envelope."""
    return LedgerSnapshot(
        categories=_categories(),
        transactions=[
            _txn(1, "income", "salary", "1000", "2025-02-01"),
            _txn(2, "expense", "groceries", "150", "2025-02-10"),
            _txn(3, "expense", "housing", "500", "2025-02-01"),
            _txn(4, "income", "salary", "2000", "2025-03-01"),
        ],
        budgets=[
            Budget(id="b1", category_id="groceries", month="2025-02", assigned=Decimal("100")),
            Budget(id="b2", category_id="housing", month="2025-02", assigned=Decimal("500")),
        ],
    )


class TestMonthHelpers:
    def test_previous_month_wraps_year(self) -> None:
        assert previous_month("2025-01") == "2024-12"
        assert previous_month("2025-10") == "2025-09"

    def test_month_key(self) -> None:
        assert month_key(date(2025, 3, 9)) == "2025-03"


class TestCategoryAvailable:
    def test_no_record_is_activity_only(self) -> None:
        ledger = LedgerSnapshot(transactions=[_txn(1, "expense", "groceries", "50", "2025-03-05")])
        budgeter = EnvelopeBudgeter(ledger)
        assert budgeter.category_available("groceries", "2025-03") == Decimal("-50")

    def test_unknown_category_is_zero(self) -> None:
        budgeter = EnvelopeBudgeter(LedgerSnapshot())
        assert budgeter.category_available("nothing", "2025-03") == 0

    def test_carries_forward_from_previous_month(self) -> None:
        ledger = LedgerSnapshot(
            transactions=[
                _txn(1, "expense", "groceries", "30", "2025-02-10"),
                _txn(2, "expense", "groceries", "20", "2025-03-10"),
            ],
            budgets=[
                Budget(category_id="groceries", month="2025-02", assigned=Decimal("100")),
                Budget(category_id="groceries", month="2025-03", assigned=Decimal("50")),
            ],
        )
        budgeter = EnvelopeBudgeter(ledger)

        assert budgeter.category_available("groceries", "2025-02") == Decimal("70")
        assert budgeter.category_available("groceries", "2025-03") == Decimal("100")

    def test_recurrence_holds_across_months(self) -> None:
        ledger = LedgerSnapshot(
            transactions=[
                _txn(1, "expense", "groceries", "80", "2025-01-03"),
                _txn(2, "expense", "groceries", "120", "2025-02-03"),
                _txn(3, "income", "groceries", "15", "2025-03-03"),  # refund
                _txn(4, "expense", "groceries", "60", "2025-03-20"),
            ],
            budgets=[
                Budget(category_id="groceries", month="2025-01", assigned=Decimal("100")),
                Budget(category_id="groceries", month="2025-02", assigned=Decimal("100")),
                Budget(category_id="groceries", month="2025-03", assigned=Decimal("100")),
            ],
        )
        budgeter = EnvelopeBudgeter(ledger)

        for month in ("2025-02", "2025-03"):
            record = ledger.get_budget("groceries", month)
            expected = (
                budgeter.category_available("groceries", previous_month(month))
                + record.assigned
                + budgeter.category_activity("groceries", month)
            )
            assert budgeter.category_available("groceries", month) == expected

        assert budgeter.category_available("groceries", "2025-03") == Decimal("55")

    def test_carry_stops_at_month_without_record(self) -> None:
        ledger = LedgerSnapshot(
            budgets=[
                Budget(category_id="groceries", month="2025-01", assigned=Decimal("100")),
                Budget(category_id="groceries", month="2025-03", assigned=Decimal("10")),
            ],
        )
        budgeter = EnvelopeBudgeter(ledger)

        # February has no record, so March starts from zero
        assert budgeter.category_available("groceries", "2025-03") == Decimal("10")
        # February itself still sees January's balance
        assert budgeter.category_available("groceries", "2025-02") == Decimal("100")

    def test_does_not_mutate(self) -> None:
        ledger = _carry_ledger()
        before = [b.model_dump() for b in ledger.budgets]
        EnvelopeBudgeter(ledger).category_available("groceries", "2025-03")
        assert [b.model_dump() for b in ledger.budgets] == before


class TestAvailableToBudget:
    def test_income_plus_carry_minus_overspending(self) -> None:
        budgeter = EnvelopeBudgeter(_carry_ledger())
        # 2000 income + (1000 - 600) unassigned - 50 overspent groceries
        assert budgeter.available_to_budget("2025-03") == Decimal("2350")

    def test_unassigned_carry_floors_at_zero(self) -> None:
        ledger = _carry_ledger()
        ledger.budgets.append(
            Budget(category_id="dining", month="2025-02", assigned=Decimal("900"))
        )
        budgeter = EnvelopeBudgeter(ledger)
        # Over-assigned February contributes nothing, overspending still counts
        assert budgeter.available_to_budget("2025-03") == Decimal("1950")

    def test_only_looks_back_one_month(self) -> None:
        ledger = _carry_ledger()
        budgeter = EnvelopeBudgeter(ledger)
        # April has no income and March had no assignments: only March's income carries
        assert budgeter.available_to_budget("2025-04") == Decimal("2000")

    def test_empty_ledger(self) -> None:
        assert EnvelopeBudgeter(LedgerSnapshot()).available_to_budget("2025-03") == 0


class TestMonthlyBudgetSummary:
    def test_to_be_budgeted_is_available_minus_assigned(self) -> None:
        ledger = _carry_ledger()
        budgeter = EnvelopeBudgeter(ledger)
        budgeter.assign_money("housing", "2025-03", 1000)

        summary = budgeter.monthly_budget_summary("2025-03")
        assert isinstance(summary, BudgetSummary)
        assert summary.available_to_budget == Decimal("2350")
        assert summary.total_assigned == Decimal("1000")
        assert summary.to_be_budgeted == Decimal("1350")
        assert summary.is_fully_assigned is False
        assert summary.is_over_assigned is False

    def test_fully_assigned(self) -> None:
        budgeter = EnvelopeBudgeter(_carry_ledger())
        budgeter.assign_money("housing", "2025-03", 2350)
        summary = budgeter.monthly_budget_summary("2025-03")
        assert summary.to_be_budgeted == 0
        assert summary.is_fully_assigned is True

    def test_over_assigned(self) -> None:
        budgeter = EnvelopeBudgeter(_carry_ledger())
        budgeter.assign_money("housing", "2025-03", 3000)
        summary = budgeter.monthly_budget_summary("2025-03")
        assert summary.to_be_budgeted == Decimal("-650")
        assert summary.is_over_assigned is True
        assert summary.is_fully_assigned is False


class TestAssignMoney:
    def test_creates_record(self) -> None:
        ledger = LedgerSnapshot(transactions=[_txn(1, "expense", "groceries", "40", "2025-03-02")])
        budget = EnvelopeBudgeter(ledger).assign_money("groceries", "2025-03", 100)

        assert budget in ledger.budgets
        assert budget.assigned == Decimal("100")
        assert budget.activity == Decimal("-40")
        assert budget.available == Decimal("60")

    def test_no_transactions_yet(self) -> None:
        ledger = LedgerSnapshot()
        budget = EnvelopeBudgeter(ledger).assign_money("dining", "2025-03", 25)
        assert budget.activity == 0
        assert budget.available == Decimal("25")

    def test_additive_and_unique(self) -> None:
        twice = LedgerSnapshot()
        budgeter = EnvelopeBudgeter(twice)
        budgeter.assign_money("groceries", "2025-03", 10)
        budgeter.assign_money("groceries", "2025-03", 10)

        once = LedgerSnapshot()
        EnvelopeBudgeter(once).assign_money("groceries", "2025-03", 20)

        assert len(twice.budgets) == 1
        assert twice.budgets[0].assigned == once.budgets[0].assigned == Decimal("20")

    def test_negative_amount_unassigns(self) -> None:
        ledger = LedgerSnapshot()
        budgeter = EnvelopeBudgeter(ledger)
        budgeter.assign_money("groceries", "2025-03", 100)
        budget = budgeter.assign_money("groceries", "2025-03", -30)
        assert budget.assigned == Decimal("70")
        assert budget.available == Decimal("70")

    def test_string_and_float_amounts(self) -> None:
        ledger = LedgerSnapshot()
        budgeter = EnvelopeBudgeter(ledger)
        budgeter.assign_money("groceries", "2025-03", "0.1")
        budget = budgeter.assign_money("groceries", "2025-03", 0.2)
        assert budget.assigned == Decimal("0.3")

    def test_refreshes_stale_activity(self) -> None:
        ledger = LedgerSnapshot()
        budgeter = EnvelopeBudgeter(ledger)
        budgeter.assign_money("groceries", "2025-03", 100)
        ledger.transactions.append(_txn(1, "expense", "groceries", "35", "2025-03-15"))

        budget = budgeter.assign_money("groceries", "2025-03", 0)
        assert budget.activity == Decimal("-35")
        assert budget.available == Decimal("65")


def _auto_ledger(goal_target: str = "1200", already_assigned: str | None = None) -> LedgerSnapshot:
    budgets = [Budget(category_id="dining", month="2025-03", assigned=Decimal("50"))]
    if already_assigned is not None:
        budgets.append(
            Budget(category_id="vacation", month="2025-03", assigned=Decimal(already_assigned))
        )
    return LedgerSnapshot(
        categories=_categories(),
        transactions=[
            _txn(1, "income", "salary", "1000", "2025-03-01"),
            _txn(2, "expense", "dining", "120", "2025-03-08"),
        ],
        budgets=budgets,
        goals=[
            Goal(
                id="goal_vacation",
                category_id="vacation",
                name="Summer trip",
                type=GoalType.TARGET_DATE,
                target_amount=Decimal(goal_target),
                target_date=date(2025, 9, 1),
                monthly_funding=Decimal("200"),
            ),
        ],
        settings=LedgerSettings(auto_assign_priority=["vacation"]),
    )


class TestAutoAssignMoney:
    REF = date(2025, 3, 1)

    def test_covers_overspending_then_funds_goals(self) -> None:
        ledger = _auto_ledger()
        budgeter = EnvelopeBudgeter(ledger)
        assert budgeter.monthly_budget_summary("2025-03").to_be_budgeted == Decimal("950")

        touched = budgeter.auto_assign_money("2025-03", ["vacation"], self.REF)

        assert [b.category_id for b in touched] == ["dining", "vacation"]
        assert touched[0].assigned == Decimal("120")
        assert touched[0].available == 0
        assert touched[1].assigned == Decimal("200")
        assert budgeter.monthly_budget_summary("2025-03").to_be_budgeted == Decimal("680")

    def test_never_exceeds_to_be_budgeted(self) -> None:
        ledger = _auto_ledger(goal_target="12000")
        budgeter = EnvelopeBudgeter(ledger)

        touched = budgeter.auto_assign_money("2025-03", ["vacation"], self.REF)

        assert touched[-1].assigned == Decimal("880")
        assert budgeter.monthly_budget_summary("2025-03").to_be_budgeted == 0

    def test_tops_up_existing_goal_assignment(self) -> None:
        ledger = _auto_ledger(already_assigned="150")
        touched = EnvelopeBudgeter(ledger).auto_assign_money("2025-03", ["vacation"], self.REF)

        vacation = [b for b in touched if b.category_id == "vacation"]
        assert vacation[0].assigned == Decimal("200")

    def test_nothing_when_not_positive(self) -> None:
        ledger = _auto_ledger()
        budgeter = EnvelopeBudgeter(ledger)
        budgeter.assign_money("housing", "2025-03", 950)
        before = [b.model_dump() for b in ledger.budgets]

        assert budgeter.auto_assign_money("2025-03", ["vacation"], self.REF) == []
        assert [b.model_dump() for b in ledger.budgets] == before

    def test_skips_non_goal_and_inactive(self) -> None:
        ledger = _auto_ledger()
        ledger.goals[0].is_active = False
        touched = EnvelopeBudgeter(ledger).auto_assign_money(
            "2025-03", ["dining", "groceries", "vacation"], self.REF
        )
        assert [b.category_id for b in touched] == ["dining"]

    def test_defaults_to_settings_priority(self) -> None:
        ledger = _auto_ledger()
        touched = EnvelopeBudgeter(ledger).auto_assign_money("2025-03", reference_date=self.REF)
        assert [b.category_id for b in touched] == ["dining", "vacation"]

    def test_overspending_larger_than_funds(self) -> None:
        ledger = _auto_ledger()
        ledger.transactions.append(_txn(3, "expense", "dining", "2000", "2025-03-20"))
        budgeter = EnvelopeBudgeter(ledger)

        touched = budgeter.auto_assign_money("2025-03", ["vacation"], self.REF)

        assert len(touched) == 1
        assert touched[0].assigned == Decimal("1000")
        assert budgeter.category_available("dining", "2025-03") < 0


class TestEnvelopeStatus:
    @pytest.mark.parametrize(
        "assigned,spent,expected",
        [
            ("50", "80", EnvelopeStatus.OVERSPENT),
            ("50", "50", EnvelopeStatus.SPENT),
            ("50", "10", EnvelopeStatus.AVAILABLE),
            (None, None, EnvelopeStatus.EMPTY),
        ],
    )
    def test_status(self, assigned, spent, expected) -> None:
        ledger = LedgerSnapshot()
        if assigned:
            ledger.budgets.append(
                Budget(category_id="dining", month="2025-03", assigned=Decimal(assigned))
            )
        if spent:
            ledger.transactions.append(_txn(1, "expense", "dining", spent, "2025-03-04"))
        assert EnvelopeBudgeter(ledger).category_status("dining", "2025-03") == expected


class TestGroupingAndOverview:
    def test_group_categories(self) -> None:
        groups = EnvelopeBudgeter(LedgerSnapshot(categories=_categories())).group_categories()

        assert [c.id for c in groups.immediate] == ["housing", "groceries"]
        assert [c.id for c in groups.true_expenses] == ["dining"]
        assert [c.id for c in groups.goals] == ["vacation"]
        assert [c.id for c in groups.debts] == ["visa-payment"]

    def test_monthly_overview(self) -> None:
        overview = EnvelopeBudgeter(_carry_ledger()).monthly_overview("2025-02")
        assert overview.income == Decimal("1000")
        assert overview.expenses == Decimal("650")
        assert overview.balance == Decimal("350")
        assert overview.transaction_count == 3

    def test_merge_budget_records(self) -> None:
        existing = [
            Budget(category_id="groceries", month="2025-03", assigned=Decimal("10")),
            Budget(category_id="dining", month="2025-03", assigned=Decimal("5")),
        ]
        updated = Budget(category_id="groceries", month="2025-03", assigned=Decimal("30"))
        added = Budget(category_id="housing", month="2025-03", assigned=Decimal("900"))

        merged = merge_budget_records(existing, [updated, added])

        assert [b.category_id for b in merged] == ["groceries", "dining", "housing"]
        assert merged[0].assigned == Decimal("30")
        assert existing[0].assigned == Decimal("10")


class TestGroupTotalsAndUtilization:
    def test_group_totals(self) -> None:
        totals = EnvelopeBudgeter(_carry_ledger()).group_totals("2025-02")

        assert [t.group for t in totals] == ["immediate", "true_expenses", "goals", "debts"]
        immediate = totals[0]
        assert immediate.category_count == 2
        assert immediate.assigned == Decimal("600")
        # housing 500 - 500, groceries 100 - 150
        assert immediate.available == Decimal("-50")
        assert immediate.is_overspent is True
        assert totals[1].assigned == totals[1].available == 0
        assert totals[1].is_overspent is False

    def test_budget_utilization_sorted_by_use(self) -> None:
        ledger = _carry_ledger()
        ledger.budgets.extend([
            Budget(category_id="dining", month="2025-02", assigned=Decimal("0")),
            Budget(category_id="deleted-category", month="2025-02", assigned=Decimal("75")),
        ])

        rows = EnvelopeBudgeter(ledger).budget_utilization("2025-02")

        assert [r.category_id for r in rows] == ["groceries", "housing"]
        groceries, housing = rows
        assert groceries.spent == Decimal("150")
        assert groceries.utilization == Decimal("150")
        assert groceries.remaining == Decimal("-50")
        assert groceries.is_over_budget is True
        assert housing.utilization == Decimal("100")
        assert housing.is_over_budget is False

    def test_utilization_ignores_income(self) -> None:
        ledger = LedgerSnapshot(
            categories=_categories(),
            transactions=[
                _txn(1, "expense", "dining", "30", "2025-03-02"),
                _txn(2, "income", "dining", "10", "2025-03-03"),
                _txn(3, "expense", "dining", "99", "2025-04-01"),
            ],
            budgets=[Budget(category_id="dining", month="2025-03", assigned=Decimal("120"))],
        )
        [row] = EnvelopeBudgeter(ledger).budget_utilization("2025-03")
        assert row.spent == Decimal("30")
        assert row.utilization == Decimal("25")
        assert row.remaining == Decimal("90")
