"""
Daily Accumulator
=================

Planned and achieved weight spread over the days of a time window, and the
cumulative S-curve built from them. Scope is normalised against the leaves
being accumulated, so the planned curve of a complete schedule ends at 100.
"""

import logging
from collections import namedtuple
from datetime import date
from typing import List, Optional, Sequence

import numpy as np

from sitegantt.domain.task import TaskStatus
from sitegantt.services.hierarchy import get_leaf_tasks
from sitegantt.services.weighting import FINANCIAL, task_scope, total_scope
from sitegantt.utils.dates import add_days, days_between, today

logger = logging.getLogger(__name__)

SCurvePoint = namedtuple("SCurvePoint", ["date", "plan", "actual"])


class SCurveResult:
    """Cumulative curve points plus the figures the chart needs around them."""

    def __init__(self, points: List[SCurvePoint], max_actual_date: Optional[date], total_scope: float,
                 plan_daily: np.ndarray, actual_daily: np.ndarray):
        self.points = points
        self.max_actual_date = max_actual_date
        self.total_scope = total_scope
        self.plan_daily = plan_daily
        self.actual_daily = actual_daily

    @property
    def final_plan(self) -> float:
        return self.points[-1].plan if self.points else 0.0

    @property
    def final_actual(self) -> float:
        return self.points[-1].actual if self.points else 0.0

    def value_at(self, when: date) -> Optional[SCurvePoint]:
        """Last point dated on or before ``when``."""
        found = None
        for point in self.points:
            if point.date > when:
                break
            found = point
        return found

    def __repr__(self) -> str:
        return (
            f"SCurveResult(points={len(self.points)}, plan={self.final_plan:.1f}, "
            f"actual={self.final_actual:.1f})"
        )


def _spread(daily: np.ndarray, start_index: int, days: int, amount: float, spill_early: bool = False):
    """Add ``amount`` evenly over ``days`` buckets from ``start_index``, clipped to the window."""
    per_day = amount / max(1, days)
    first = max(0, start_index)
    last = min(len(daily), start_index + days)
    if last > first:
        daily[first:last] += per_day
    if spill_early and start_index < 0:
        early_days = min(days, -start_index)
        daily[0] += per_day * early_days


def actual_window(task, as_of: date):
    """
    Range over which a task's achieved weight is spread.

    Starts at the actual start (or planned start) and ends at the actual end,
    or ``as_of`` while the task is open. Never ends before it starts.
    """
    start = task.actual_start_date or task.plan_start_date
    if start is None:
        return None
    end = task.actual_end_date or as_of
    if end < start:
        end = start
    return start, end


def latest_actual_date(leaves: Sequence, as_of: date) -> Optional[date]:
    """
    Day after the last recorded actual activity, or ``as_of`` when work is
    still in progress and later than that.
    """
    latest = None
    for task in leaves:
        candidate = None
        if task.actual_end_date is not None:
            candidate = task.actual_end_date
        elif task.status == TaskStatus.COMPLETED.value and task.actual_start_date is not None:
            candidate = task.actual_start_date
        if candidate is not None and (latest is None or candidate > latest):
            latest = candidate

    if latest is not None:
        latest = add_days(latest, 1)

    if any(t.status == TaskStatus.IN_PROGRESS.value for t in leaves):
        if latest is None or as_of > latest:
            latest = as_of
    return latest


def compute_scurve(tasks: Sequence, time_range, mode: str = FINANCIAL, as_of: Optional[date] = None) -> SCurveResult:
    """
    Build the cumulative planned/actual S-curve over ``time_range``.

    Args:
        tasks: Task list (groups are ignored, only leaves contribute)
        time_range: TimeRange window
        mode: "financial" (cost scope) or "physical" (duration scope)
        as_of: End date for open actual work, defaults to today

    Returns:
        SCurveResult: a zero point at the window start followed by one point
        per window day, each capped at 100
    """
    as_of = as_of or today()
    total_days = max(1, days_between(time_range.end, time_range.start) + 1)
    plan_daily = np.zeros(total_days)
    actual_daily = np.zeros(total_days)

    leaves = get_leaf_tasks(tasks)
    scope = total_scope(leaves, mode)

    for task in leaves:
        weight = task_scope(task, mode)
        if scope <= 0 or weight <= 0:
            continue
        weight_percent = weight / scope * 100

        if task.has_plan_range() and task.plan_start_date <= task.plan_end_date:
            duration = days_between(task.plan_end_date, task.plan_start_date) + 1
            start_index = days_between(task.plan_start_date, time_range.start)
            _spread(plan_daily, start_index, duration, weight_percent)

        progress = task.progress or 0
        if progress <= 0:
            continue
        window = actual_window(task, as_of)
        if window is None:
            logger.debug("Task %s has progress but no start date", task.id)
            continue
        actual_start, actual_end = window
        duration = days_between(actual_end, actual_start) + 1
        start_index = days_between(actual_start, time_range.start)
        _spread(actual_daily, start_index, duration, weight_percent * progress / 100, spill_early=True)

    cumulative_plan = np.minimum(100.0, np.round(np.cumsum(plan_daily), 6))
    cumulative_actual = np.minimum(100.0, np.round(np.cumsum(actual_daily), 6))

    points = [SCurvePoint(time_range.start, 0.0, 0.0)]
    for i in range(total_days):
        points.append(
            SCurvePoint(
                add_days(time_range.start, i + 1),
                float(cumulative_plan[i]),
                float(cumulative_actual[i]),
            )
        )

    return SCurveResult(
        points, latest_actual_date(leaves, as_of), scope, plan_daily, actual_daily
    )
