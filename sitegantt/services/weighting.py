"""
Weight Model
============

A task's weight is its share of the total scope, in percent. Scope is cost
when any leaf task carries a cost, otherwise inclusive planned duration in
days. Every ratio guards its denominator and yields 0 instead of NaN.
"""

from collections import namedtuple
from datetime import date
from typing import Dict, Optional, Sequence

from sitegantt.services.hierarchy import get_leaf_tasks
from sitegantt.utils.dates import days_between, round_half_up, today

FINANCIAL = "financial"
PHYSICAL = "physical"
SCOPE_MODES = (FINANCIAL, PHYSICAL)

BudgetStats = namedtuple(
    "BudgetStats", ["total_cost", "total_duration", "use_cost_weighting", "total_weight"]
)


def plan_days(task) -> int:
    """Inclusive planned duration, 0 when the plan range is missing or reversed."""
    if not task.has_plan_range():
        return 0
    return max(0, days_between(task.plan_end_date, task.plan_start_date) + 1)


def compute_budget_stats(tasks: Sequence) -> BudgetStats:
    """Totals over leaf tasks that decide how every task is weighted."""
    leaves = get_leaf_tasks(tasks)
    total_cost = sum(t.cost or 0 for t in leaves)
    total_duration = sum(plan_days(t) for t in leaves)
    use_cost_weighting = any((t.cost or 0) > 0 for t in leaves)
    total_weight = total_cost if use_cost_weighting else total_duration
    return BudgetStats(total_cost, total_duration, use_cost_weighting, total_weight)


def weight_of(task, stats: BudgetStats) -> float:
    """Raw (unnormalised) weight: cost or duration depending on the model."""
    if task.is_group:
        return 0
    if stats.use_cost_weighting:
        return task.cost or 0
    return plan_days(task)


def task_weight(task, stats: BudgetStats) -> float:
    """Task weight as a percent of the total; 0 for groups and empty totals."""
    if stats.total_weight <= 0:
        return 0.0
    return weight_of(task, stats) / stats.total_weight * 100


def weight_table(tasks: Sequence, stats: Optional[BudgetStats] = None) -> Dict[str, float]:
    """Weight percent for every task, keyed by id."""
    if stats is None:
        stats = compute_budget_stats(tasks)
    return {t.id: task_weight(t, stats) for t in tasks}


def task_scope(task, mode: str) -> float:
    """Scope of one task for an S-curve in financial (cost) or physical (days) mode."""
    if mode not in SCOPE_MODES:
        raise ValueError(f"Scope mode must be one of {list(SCOPE_MODES)}, got {mode}")
    if mode == FINANCIAL:
        return task.cost or 0
    return plan_days(task)


def total_scope(tasks: Sequence, mode: str) -> float:
    return sum(task_scope(t, mode) for t in tasks)


def overall_progress(tasks: Sequence, stats: Optional[BudgetStats] = None) -> float:
    """Weighted mean progress of the whole task list, 0 when nothing has weight."""
    if stats is None:
        stats = compute_budget_stats(tasks)

    total = 0.0
    weighted_sum = 0.0
    for task in tasks:
        weight = task_weight(task, stats)
        if weight > 0:
            total += weight
            weighted_sum += weight * (task.progress or 0)
    return weighted_sum / total if total > 0 else 0.0


def planned_percent_at(task, reference: date) -> float:
    """Share of a task's plan that should be done by the end of ``reference``."""
    if reference < task.plan_start_date:
        return 0.0
    if reference >= task.plan_end_date:
        return 100.0
    elapsed = max(0, days_between(reference, task.plan_start_date) + 1)
    return min(100.0, elapsed / task.plan_duration * 100)


def kpi_stats(tasks: Sequence, reference: Optional[date] = None) -> Dict[str, Optional[float]]:
    """
    Headline schedule indicators at a reference date.

    Returns:
        dict: progress (weighted actual percent), plan_to_date (weighted
        planned percent), gap (progress - plan_to_date), variance_percent
        (same as gap) and variance_days (gap scaled to the overall plan span,
        None without any planned dates)
    """
    if reference is None:
        reference = today()

    stats = compute_budget_stats(tasks)
    progress = overall_progress(tasks, stats)

    plan_weighted = 0.0
    weight_sum = 0.0
    overall_start = None
    overall_end = None

    for task in get_leaf_tasks(tasks):
        if not task.has_plan_range():
            continue

        weight = task_weight(task, stats)
        if weight > 0:
            weight_sum += weight
            plan_weighted += weight * planned_percent_at(task, reference)

        if overall_start is None or task.plan_start_date < overall_start:
            overall_start = task.plan_start_date
        if overall_end is None or task.plan_end_date > overall_end:
            overall_end = task.plan_end_date

    plan_to_date = plan_weighted / weight_sum if weight_sum > 0 else 0.0
    gap = progress - plan_to_date

    variance_days = None
    if overall_start is not None and overall_end is not None:
        span = max(1, days_between(overall_end, overall_start) + 1)
        variance_days = round_half_up(gap / 100 * span)

    return {
        "progress": progress,
        "plan_to_date": plan_to_date,
        "gap": gap,
        "variance_percent": gap,
        "variance_days": variance_days,
    }
