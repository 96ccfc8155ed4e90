"""
Earned-value metrics and the weekly cost series.

All ratios guard their denominators: CPI and SPI are 0 when AC or PV is 0,
and EAC falls back to the total budget when CPI is 0.
"""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from sitegantt.services.hierarchy import get_leaf_tasks
from sitegantt.utils.dates import add_days, days_between, round_half_up, today, week_start

logger = logging.getLogger(__name__)

ALL_PROJECTS = "all"


def time_elapsed_fraction(start: date, end: date, as_of: date) -> float:
    """
    Planned share of a range that has elapsed at ``as_of``.

    0 before the start, 1 at or after the end, linear in days between. A
    zero-length range counts as fully elapsed from its start day.
    """
    total = days_between(end, start)
    if total <= 0:
        return 1.0 if as_of >= start else 0.0
    passed = min(max(0, days_between(as_of, start)), total)
    return passed / total


def _planned_value(task, as_of: date) -> float:
    if not task.has_plan_range() or task.plan_end_date < task.plan_start_date:
        return 0.0
    return (task.cost or 0) * time_elapsed_fraction(task.plan_start_date, task.plan_end_date, as_of)


def compute_evm(tasks: Sequence, expenses: Sequence = (), as_of: Optional[date] = None) -> Dict[str, float]:
    """
    Earned-value figures for a set of tasks at a date.

    Args:
        tasks: Task list; only leaf tasks carry value
        expenses: Recorded expenses, summed as actual cost
        as_of: Status date, defaults to today

    Returns:
        dict: total_budget, pv, ev, ac, cpi, spi, eac, etc, cv, sv
    """
    as_of = as_of or today()
    leaves = get_leaf_tasks(tasks)

    total_budget = sum(t.cost or 0 for t in leaves)
    pv = sum(_planned_value(t, as_of) for t in leaves)
    ev = sum((t.cost or 0) * (t.progress or 0) / 100 for t in leaves)
    ac = sum(e.amount for e in expenses)

    cpi = ev / ac if ac > 0 else 0.0
    spi = ev / pv if pv > 0 else 0.0
    eac = total_budget / cpi if cpi > 0 else total_budget
    etc = max(0.0, eac - ac)

    return {
        "total_budget": total_budget,
        "pv": pv,
        "ev": ev,
        "ac": ac,
        "cpi": cpi,
        "spi": spi,
        "eac": eac,
        "etc": etc,
        "cv": ev - ac,
        "sv": ev - pv,
    }


def select_portfolio(projects: Sequence, tasks: Sequence, expenses: Sequence = (), project_id: str = ALL_PROJECTS) -> Tuple[List, List]:
    """
    Tasks and expenses feeding an EVM report.

    A single project id selects that project's records. ``"all"`` selects
    the records of every active project (not completed or cancelled).
    """
    if project_id == ALL_PROJECTS:
        active = {p.id for p in projects if p.is_active}
        skipped = len(projects) - len(active)
        if skipped:
            logger.debug("Excluding %d inactive projects from portfolio", skipped)
    else:
        active = {project_id}

    return (
        [t for t in tasks if t.project_id in active],
        [e for e in expenses if e.project_id in active],
    )


def earned_value_at(task, week_end: date, as_of: date) -> float:
    """
    Earned value of one task at the end of a past week.

    Progress is assumed to accrue linearly from the actual start to the
    actual end, or to ``as_of`` while the task is open.
    """
    if task.actual_start_date is None or (task.progress or 0) <= 0:
        return 0.0
    earned = (task.cost or 0) * task.progress / 100
    start = task.actual_start_date
    end = task.actual_end_date or as_of
    if week_end < start:
        return 0.0
    if week_end >= end:
        return earned
    total = days_between(end, start)
    if total <= 0:
        return earned
    return earned * days_between(week_end, start) / total


def weekly_cost_series(tasks: Sequence, expenses: Sequence = (), as_of: Optional[date] = None,
                       start: Optional[date] = None, end: Optional[date] = None) -> List[Dict]:
    """
    Cumulative PV/EV/AC at the end of each Monday-start week.

    Without explicit bounds the weeks span every plan, actual and expense
    date, padded by one week before and two after; with no dates at all,
    four weeks either side of ``as_of``.

    Returns:
        list: dicts with week_start, week_end and rounded pv, ev, ac
    """
    as_of = as_of or today()
    leaves = get_leaf_tasks(tasks)

    if start is None or end is None:
        dates = []
        for task in leaves:
            dates.extend(d for d in (task.plan_start_date, task.plan_end_date, task.actual_start_date) if d)
        dates.extend(e.date for e in expenses if e.date)
        if dates:
            low, high = min(dates), max(dates)
        else:
            low, high = as_of - timedelta(weeks=4), as_of + timedelta(weeks=4)
        start = start or low - timedelta(weeks=1)
        end = end or high + timedelta(weeks=2)

    series = []
    current = week_start(start)
    while current <= end:
        week_end = add_days(current, 6)
        pv = sum(_planned_value(t, week_end) for t in leaves)
        ev = sum(earned_value_at(t, week_end, as_of) for t in leaves)
        ac = sum(e.amount for e in expenses if e.date and e.date <= week_end)
        series.append(
            {
                "week_start": current,
                "week_end": week_end,
                "pv": round_half_up(pv),
                "ev": round_half_up(ev),
                "ac": round_half_up(ac),
            }
        )
        current = add_days(current, 7)
    return series
