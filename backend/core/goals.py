"""
Monthly content goal progress.

Required counts grow linearly through the month: on day ``d`` of an
``n``-day month a goal ``g`` requires ``ceil(g * d / n)`` published
pieces, computed in integers.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Mapping

from .dates import days_in_month

FORMAT_SHORT = "Kratka Forma"
FORMAT_LONG = "Duga Forma"

CONGRATULATIONS = "Čestitamo! Svi ciljevi za ovaj mesec su već ispunjeni. Kreirajte dalje!"


@dataclass
class GoalProgress:
    completed_short: int
    completed_long: int
    required_short: int
    required_long: int
    notification: str | None
    notification_kind: str | None  # "behind_short", "behind_long", "goals_met"


def _field(task: Any, name: str) -> Any:
    if isinstance(task, Mapping):
        return task.get(name)
    return getattr(task, name, None)


def calculate_goal_progress(
    tasks: Iterable[Any],
    monthly_goal_short: int | None,
    monthly_goal_long: int | None,
    today: date,
) -> GoalProgress:
    """Compare published tasks against the pro-rated monthly goals.

    ``tasks`` may be ORM rows or plain dicts. Case studies never count.
    """
    goal_short = monthly_goal_short or 0
    goal_long = monthly_goal_long or 0

    completed_short = 0
    completed_long = 0
    for task in tasks:
        if _field(task, "is_admin_case_study") or _field(task, "status") != "published":
            continue
        if _field(task, "format") == FORMAT_SHORT:
            completed_short += 1
        elif _field(task, "format") == FORMAT_LONG:
            completed_long += 1

    day, month_days = today.day, days_in_month(today)
    required_short = -(-goal_short * day // month_days)
    required_long = -(-goal_long * day // month_days)

    notification = None
    kind = None
    if goal_short > 0 and completed_short < required_short:
        notification = (
            f"Kratka forma: Zaostajete ({completed_short}/{required_short} potrebno). "
            "Ubrzajte kreiranje!"
        )
        kind = "behind_short"
    elif goal_long > 0 and completed_long < required_long:
        notification = (
            f"Duga forma: Zaostajete ({completed_long}/{required_long} potrebno). "
            "Ubrzajte kreiranje!"
        )
        kind = "behind_long"
    elif completed_short >= goal_short and completed_long >= goal_long:
        notification = CONGRATULATIONS
        kind = "goals_met"

    return GoalProgress(
        completed_short=completed_short,
        completed_long=completed_long,
        required_short=required_short,
        required_long=required_long,
        notification=notification,
        notification_kind=kind,
    )
