"""
Goal Progress — project when savings goals will be reached.

Three goal shapes:
- ``target_balance``: just a number to reach; always on track.
- ``target_date``: reach the number by a date; recommends a monthly amount.
- ``monthly_funding``: fixed monthly contribution; projects months left.

``current_amount`` is maintained by the caller. Nothing here writes to a goal.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from functools import cmp_to_key

from envelopepilot.models.ledger import Goal, GoalType, LedgerSnapshot

logger = logging.getLogger("envelopepilot.analyzers.goals")

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class GoalNotFoundError(ValueError):
    """Raised when a goal id is not in the ledger."""

    def __init__(self, goal_id: str) -> None:
        self.goal_id = goal_id
        super().__init__(f"Goal not found: {goal_id}")


@dataclass
class GoalProgress:
    """Projection for a single goal."""

    goal_id: str
    name: str = ""
    target_amount: Decimal = ZERO
    current_amount: Decimal = ZERO
    target_date: date | None = None
    progress: Decimal = ZERO  # percent
    months_remaining: int = 0
    on_track: bool = True
    recommended_monthly: Decimal = ZERO

    @property
    def is_complete(self) -> bool:
        return self.progress >= HUNDRED


@dataclass
class GoalsSummary:
    """Roll-up across all active goals."""

    goals: list[GoalProgress] = field(default_factory=list)
    completed: int = 0
    on_track: int = 0
    behind_schedule: int = 0
    total_target: Decimal = ZERO
    total_saved: Decimal = ZERO

    @property
    def total(self) -> int:
        return len(self.goals)

    @property
    def overall_progress(self) -> Decimal:
        if self.total_target <= 0:
            return ZERO
        return self.total_saved / self.total_target * HUNDRED


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start`` to ``end``, ignoring the day."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def _display_order(a: GoalProgress, b: GoalProgress) -> int:
    # Unfinished goals first, then soonest deadline, then furthest along.
    if a.is_complete and not b.is_complete:
        return 1
    if not a.is_complete and b.is_complete:
        return -1
    if a.target_date and b.target_date:
        return (a.target_date > b.target_date) - (a.target_date < b.target_date)
    return (b.progress > a.progress) - (b.progress < a.progress)


class GoalTracker:
    """Goal projections over a ledger snapshot."""

    def __init__(self, snapshot: LedgerSnapshot):
        self.snapshot = snapshot

    def active_goal_for_category(self, category_id: str) -> Goal | None:
        for goal in self.snapshot.goals:
            if goal.category_id == category_id and goal.is_active:
                return goal
        return None

    def calculate_goal_progress(self, goal_id: str, reference_date: date | None = None) -> GoalProgress:
        """
        Calculate progress towards a goal.

        Args:
            goal_id: Goal to project.
            reference_date: Date to count months from (default: today).

        Returns:
            GoalProgress with percent complete and funding recommendation.

        Raises:
            GoalNotFoundError: No goal with that id.
        """
        goal = self.snapshot.get_goal(goal_id)
        if goal is None:
            raise GoalNotFoundError(goal_id)

        ref = reference_date or date.today()
        result = GoalProgress(
            goal_id=goal.id,
            name=goal.name,
            target_amount=goal.target_amount,
            current_amount=goal.current_amount,
            target_date=goal.target_date,
        )
        if goal.target_amount > 0:
            result.progress = goal.current_amount / goal.target_amount * HUNDRED

        shortfall = goal.target_amount - goal.current_amount

        if goal.type == GoalType.TARGET_DATE and goal.target_date:
            result.months_remaining = max(0, months_between(ref, goal.target_date))
            if result.months_remaining > 0:
                result.recommended_monthly = shortfall / result.months_remaining
                if goal.monthly_funding:
                    result.on_track = goal.monthly_funding >= result.recommended_monthly
                else:
                    result.on_track = False

        elif goal.type == GoalType.MONTHLY_FUNDING and goal.monthly_funding:
            result.recommended_monthly = goal.monthly_funding
            if result.recommended_monthly > 0:
                result.months_remaining = max(0, math.ceil(shortfall / result.recommended_monthly))

        logger.debug(
            "Goal %s: %.1f%% complete, %d months left, recommend %s/month",
            goal.id, result.progress, result.months_remaining, result.recommended_monthly,
        )
        return result

    def goals_summary(self, reference_date: date | None = None) -> GoalsSummary:
        """Progress for every active goal, ordered for display."""
        progress = [
            self.calculate_goal_progress(goal.id, reference_date)
            for goal in self.snapshot.goals
            if goal.is_active
        ]
        progress.sort(key=cmp_to_key(_display_order))

        summary = GoalsSummary(goals=progress)
        for item in progress:
            summary.total_target += item.target_amount
            summary.total_saved += item.current_amount
            if item.is_complete:
                summary.completed += 1
            elif item.on_track:
                summary.on_track += 1
            else:
                summary.behind_schedule += 1
        return summary
