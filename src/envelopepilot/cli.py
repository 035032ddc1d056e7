"""
EnvelopePilot CLI — command-line interface.

Usage:
    envelopepilot summary --ledger ledger.json --month 2025-03
    envelopepilot assign groceries 400 --month 2025-03
    envelopepilot debts --extra 200 --strategy snowball
"""

from __future__ import annotations

import logging
import math
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import TYPE_CHECKING, Callable

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from envelopepilot import __version__
from envelopepilot.currency import format_currency

if TYPE_CHECKING:
    from envelopepilot.config import EnvelopePilotConfig
    from envelopepilot.engine import BudgetEngine
    from envelopepilot.models.ledger import LedgerSnapshot

app = typer.Typer(
    name="envelopepilot",
    help="✉️ EnvelopePilot — envelope budgeting, debt payoff and savings goals",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold]EnvelopePilot[/bold] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Log engine computations",
    ),
) -> None:
    """✉️ EnvelopePilot — Assign. Plan. Pay off."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


LedgerOption = typer.Option(None, "--ledger", "-l", help="Path to ledger JSON (default from config)")
ConfigOption = typer.Option("envelopepilot.yaml", "--config", "-c", help="Path to config file")
MonthOption = typer.Option(None, "--month", "-m", help="Month as YYYY-MM (default: current month)")


@app.command()
def summary(
    ledger: str = LedgerOption,
    config: str = ConfigOption,
    month: str = MonthOption,
) -> None:
    """Show money to assign and every envelope for a month."""
    engine, _, settings = _open_engine(ledger, config)
    money = _formatter(engine, settings)
    month = month or _current_month()

    budget = engine.monthly_budget_summary(month)
    overview = engine.monthly_overview(month)

    console.print(Panel.fit(
        f"[bold blue]✉️ EnvelopePilot[/bold blue] — {month}",
        subtitle=f"v{__version__}",
    ))

    table = Table(title="Budget Summary", show_lines=True)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Income", money(overview.income))
    table.add_row("Expenses", money(overview.expenses))
    table.add_row("Available to Budget", money(budget.available_to_budget))
    table.add_row("Assigned", money(budget.total_assigned))
    style = "red" if budget.is_over_assigned else "green"
    table.add_row("To Be Budgeted", f"[{style}]{money(budget.to_be_budgeted)}[/{style}]")
    console.print(table)

    envelopes = Table(title="Envelopes")
    envelopes.add_column("Category", style="bold cyan")
    envelopes.add_column("Assigned", justify="right")
    envelopes.add_column("Activity", justify="right")
    envelopes.add_column("Available", justify="right")
    envelopes.add_column("Status")

    groups = engine.group_categories()
    totals = {total.group: total for total in engine.group_totals(month)}
    for (name, categories), label in zip(
        groups.sections(),
        ("Immediate", "True Expenses", "Goals", "Debts"),
    ):
        if not categories:
            continue
        total = totals[name]
        available_style = "red" if total.is_overspent else "green"
        envelopes.add_row(
            f"[bold]{label}[/bold] [dim]({total.category_count})[/dim]",
            f"[bold]{money(total.assigned)}[/bold]",
            "",
            f"[bold {available_style}]{money(total.available)}[/bold {available_style}]",
            "",
        )
        for category in categories:
            record = engine.snapshot.get_budget(category.id, month)
            assigned = record.assigned if record else Decimal("0")
            envelopes.add_row(
                f"{category.icon} {category.label}".strip(),
                money(assigned),
                money(engine.envelopes.category_activity(category.id, month)),
                money(engine.category_available(category.id, month)),
                engine.category_status(category.id, month).value,
            )
    console.print(envelopes)

    usage = engine.budget_utilization(month)
    if usage:
        progress = Table(title="Budget Utilization")
        progress.add_column("Category", style="bold cyan")
        progress.add_column("Spent", justify="right")
        progress.add_column("Assigned", justify="right")
        progress.add_column("Used", justify="right")
        progress.add_column("Remaining", justify="right")
        for row in usage:
            if row.is_over_budget:
                remaining = f"[red]{money(-row.remaining)} over[/red]"
            else:
                remaining = money(row.remaining)
            progress.add_row(
                row.label,
                money(row.spent),
                money(row.assigned),
                f"{row.utilization:.0f}%",
                remaining,
            )
        console.print(progress)


@app.command()
def assign(
    category: str = typer.Argument(..., help="Category id"),
    amount: str = typer.Argument(..., help="Amount to assign (negative to unassign)"),
    ledger: str = LedgerOption,
    config: str = ConfigOption,
    month: str = MonthOption,
) -> None:
    """Assign money to an envelope and save the ledger."""
    engine, path, settings = _open_engine(ledger, config)
    money = _formatter(engine, settings)
    month = month or _current_month()

    record = engine.assign_money(category, month, _parse_amount(amount))
    _save_ledger(engine.snapshot, path)
    console.print(
        f"[green]✓[/green] {category} {month}: assigned {money(record.assigned)}, "
        f"available {money(record.available)}"
    )


@app.command("auto-assign")
def auto_assign(
    ledger: str = LedgerOption,
    config: str = ConfigOption,
    month: str = MonthOption,
) -> None:
    """Cover overspending, then fund goals in priority order."""
    engine, path, settings = _open_engine(ledger, config)
    money = _formatter(engine, settings)
    month = month or _current_month()

    touched = engine.auto_assign_money(month)
    if not touched:
        console.print("[dim]Nothing to assign.[/dim]")
        return

    _save_ledger(engine.snapshot, path)
    table = Table(title=f"Auto-Assigned ({month})")
    table.add_column("Category", style="bold cyan")
    table.add_column("Assigned", justify="right")
    table.add_column("Available", justify="right")
    for record in touched:
        table.add_row(record.category_id, money(record.assigned), money(record.available))
    console.print(table)


@app.command()
def debts(
    ledger: str = LedgerOption,
    config: str = ConfigOption,
    extra: str = typer.Option("0", "--extra", "-e", help="Extra monthly payment"),
    strategy: str = typer.Option(None, "--strategy", "-s", help="avalanche, snowball or custom (default: config, then ledger setting)"),
) -> None:
    """Show the debt payoff plan and strategy comparison."""
    engine, _, settings = _open_engine(ledger, config)
    money = _formatter(engine, settings)
    extra_payment = _parse_amount(extra)

    # --strategy, then config or env, then the ledger's own setting
    overview = engine.debt_overview(extra_payment, strategy or settings.debt_strategy)
    if not overview.plan:
        console.print("[dim]No credit card or loan accounts.[/dim]")
        return

    table = Table(title=f"Payoff Plan ({overview.strategy.value})")
    table.add_column("#", justify="right")
    table.add_column("Debt", style="bold cyan")
    table.add_column("Balance", justify="right")
    table.add_column("Rate", justify="right")
    table.add_column("Payment", justify="right")
    table.add_column("Payoff", justify="right")
    table.add_column("Interest", justify="right")
    for entry in overview.plan:
        table.add_row(
            str(entry.payoff_order),
            entry.name,
            money(entry.balance),
            f"{entry.interest_rate:.2f}%",
            money(entry.payment),
            _months(entry.months_to_payoff),
            money(entry.total_interest),
        )
    console.print(table)

    comparison = engine.compare_debt_strategies(extra_payment)
    totals = Table(title="Totals", show_lines=True)
    totals.add_column("Metric", style="bold")
    totals.add_column("Value", justify="right")
    totals.add_row("Total Debt", money(overview.total_debt))
    totals.add_row("Minimum Payments", money(overview.total_minimum_payments))
    totals.add_row("Total Interest", money(overview.total_interest))
    totals.add_row("Debt Free In", _months(overview.time_to_payoff))
    totals.add_row("Interest Saved by Extra", money(overview.interest_saved))
    totals.add_row("Debt-Free Net Worth", money(overview.debt_free_net_worth))
    totals.add_row(
        "Avalanche vs Snowball",
        f"{money(comparison.avalanche_interest)} vs {money(comparison.snowball_interest)}",
    )
    totals.add_row("Cheaper Strategy", comparison.recommended.value)
    console.print(totals)


@app.command()
def goals(
    ledger: str = LedgerOption,
    config: str = ConfigOption,
    goal_id: str = typer.Option(None, "--id", help="Show a single goal by id"),
) -> None:
    """Show progress for every active savings goal, or one goal by id."""
    from envelopepilot.analyzers.goals import GoalNotFoundError

    engine, _, settings = _open_engine(ledger, config)
    money = _formatter(engine, settings)

    result = None
    if goal_id:
        try:
            items = [engine.calculate_goal_progress(goal_id)]
        except GoalNotFoundError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)
    else:
        result = engine.goals_summary()
        items = result.goals

    if not items:
        console.print("[dim]No active goals.[/dim]")
        return

    table = Table(title="Goals")
    table.add_column("Goal", style="bold cyan")
    table.add_column("Saved", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Progress", justify="right")
    table.add_column("Monthly", justify="right")
    table.add_column("Months Left", justify="right")
    table.add_column("Status")
    for item in items:
        if item.is_complete:
            status = "[green]complete[/green]"
        elif item.on_track:
            status = "on track"
        else:
            status = "[yellow]behind[/yellow]"
        table.add_row(
            item.name,
            money(item.current_amount),
            money(item.target_amount),
            f"{item.progress:.1f}%",
            money(item.recommended_monthly),
            str(item.months_remaining),
            status,
        )
    console.print(table)
    if result is None:
        return
    console.print(
        f"Overall: {result.overall_progress:.1f}% "
        f"({result.completed} complete, {result.on_track} on track, {result.behind_schedule} behind)"
    )


@app.command("net-worth")
def net_worth(
    ledger: str = LedgerOption,
    config: str = ConfigOption,
) -> None:
    """Show assets, liabilities and age of money."""
    engine, _, settings = _open_engine(ledger, config)
    money = _formatter(engine, settings)

    result = engine.calculate_net_worth()
    table = Table(title="Net Worth", show_lines=True)
    table.add_column("Account", style="bold")
    table.add_column("Balance", justify="right")
    for name, balance in result.account_breakdown.items():
        table.add_row(name, money(balance))
    table.add_row("[bold]Assets[/bold]", money(result.assets))
    table.add_row("[bold]Liabilities[/bold]", money(result.liabilities))
    table.add_row("[bold]Net Worth[/bold]", money(result.net_worth))
    console.print(table)
    console.print(f"Age of money: {engine.age_of_money()} days")


def _open_engine(ledger: str | None, config: str) -> tuple[BudgetEngine, Path, EnvelopePilotConfig]:
    """Load config and ledger, or exit with a message."""
    from envelopepilot.config import EnvelopePilotConfig
    from envelopepilot.engine import BudgetEngine
    from envelopepilot.models.ledger import LedgerSnapshot

    config_path = config if Path(config).exists() else None
    settings = EnvelopePilotConfig.load(config_path)
    path = Path(ledger or settings.ledger_path)

    if not path.exists():
        console.print(f"[red]Error: Ledger not found: {path}[/red]")
        raise typer.Exit(1)

    try:
        snapshot = LedgerSnapshot.model_validate_json(path.read_text())
    except ValidationError as e:
        console.print(f"[red]Error: Invalid ledger {path}:[/red] {e}")
        raise typer.Exit(1)

    return BudgetEngine(snapshot, settings.engine), path, settings


def _parse_amount(raw: str) -> Decimal:
    try:
        return Decimal(raw)
    except InvalidOperation:
        console.print(f"[red]Error: Not an amount: {raw}[/red]")
        raise typer.Exit(1)


def _save_ledger(snapshot: LedgerSnapshot, path: Path) -> None:
    path.write_text(snapshot.model_dump_json(by_alias=True, indent=2))


def _current_month() -> str:
    from envelopepilot.models.ledger import month_key

    return month_key(date.today())


def _formatter(engine: BudgetEngine, settings: EnvelopePilotConfig) -> Callable[[Decimal], str]:
    """Money formatter for the configured currency, else the ledger's."""
    currency = settings.currency or engine.snapshot.settings.currency
    return lambda value: format_currency(value, currency)


def _months(months: int | float) -> str:
    if months == math.inf:
        return "Never"
    months = int(months)
    years, rest = divmod(months, 12)
    if years == 0:
        return f"{months} months"
    if rest == 0:
        return f"{years} {'year' if years == 1 else 'years'}"
    return f"{years}y {rest}m"


if __name__ == "__main__":
    app()
