"""
Rollup Aggregator
=================

Summaries of groups and category buckets computed from leaf tasks. Group
progress is a cost-weighted mean with a unit weight for zero-cost leaves,
so a subtree without costs still averages sensibly.
"""

from datetime import date
from typing import Any, Dict, Optional, Sequence, Tuple

from sitegantt.services.hierarchy import get_leaf_descendants, get_leaf_tasks
from sitegantt.services.weighting import compute_budget_stats, task_weight
from sitegantt.utils.dates import DISPLAY_FORMAT, days_between, format_date, round_half_up


class GroupSummary:
    """Derived values of a group row; never persisted."""

    def __init__(
        self,
        count: int = 0,
        min_start_date: Optional[date] = None,
        max_end_date: Optional[date] = None,
        min_actual_date: Optional[date] = None,
        max_actual_date: Optional[date] = None,
        total_cost: float = 0,
        progress: int = 0,
        total_weight: float = 0.0,
    ):
        self.count = count
        self.min_start_date = min_start_date
        self.max_end_date = max_end_date
        self.min_actual_date = min_actual_date
        self.max_actual_date = max_actual_date
        self.total_cost = total_cost
        self.progress = progress
        self.total_weight = total_weight

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    def to_dict(self, fmt: str = DISPLAY_FORMAT) -> Dict[str, Any]:
        """
        Display form: missing plan dates are blank strings, missing actual
        dates are None.
        """
        return {
            "count": self.count,
            "min_start_date": format_date(self.min_start_date, fmt),
            "max_end_date": format_date(self.max_end_date, fmt),
            "min_actual_date": format_date(self.min_actual_date, fmt) or None,
            "max_actual_date": format_date(self.max_actual_date, fmt) or None,
            "total_cost": self.total_cost,
            "progress": self.progress,
            "total_weight": self.total_weight,
        }

    def __repr__(self) -> str:
        return (
            f"GroupSummary(count={self.count}, start={self.min_start_date}, "
            f"end={self.max_end_date}, cost={self.total_cost}, progress={self.progress})"
        )


def summarize_leaves(leaves: Sequence, weight_fn=None) -> GroupSummary:
    """
    Aggregate a set of leaf tasks.

    Args:
        leaves: Leaf tasks to aggregate
        weight_fn: Optional callable giving each leaf's weight percent, summed
            into ``total_weight``

    Returns:
        GroupSummary: Empty summary (count 0, no dates, progress 0) when there
        are no leaves
    """
    if not leaves:
        return GroupSummary()

    min_start = max_end = min_actual = max_actual = None
    total_cost = 0
    weighted_progress = 0.0
    progress_weight = 0.0
    total_weight = 0.0

    for task in leaves:
        if task.plan_start_date and (min_start is None or task.plan_start_date < min_start):
            min_start = task.plan_start_date
        if task.plan_end_date and (max_end is None or task.plan_end_date > max_end):
            max_end = task.plan_end_date

        if task.actual_start_date:
            if min_actual is None or task.actual_start_date < min_actual:
                min_actual = task.actual_start_date
            effective_end = task.effective_actual_end()
            if max_actual is None or effective_end > max_actual:
                max_actual = effective_end

        total_cost += task.cost or 0
        leaf_weight = task.cost or 1
        weighted_progress += (task.progress or 0) * leaf_weight
        progress_weight += leaf_weight

        if weight_fn is not None:
            total_weight += weight_fn(task)

    progress = round_half_up(weighted_progress / progress_weight) if progress_weight > 0 else 0

    return GroupSummary(
        count=len(leaves),
        min_start_date=min_start,
        max_end_date=max_end,
        min_actual_date=min_actual,
        max_actual_date=max_actual,
        total_cost=total_cost,
        progress=progress,
        total_weight=total_weight,
    )


def get_group_summary(group, tasks: Sequence, stats=None) -> GroupSummary:
    """
    Summary of a group from all of its leaf descendants.

    A group with no leaf descendants gets an empty summary; its own stored
    dates are not used.
    """
    if stats is None:
        stats = compute_budget_stats(tasks)
    leaves = get_leaf_descendants(group.id, tasks)
    return summarize_leaves(leaves, lambda t: task_weight(t, stats))


def group_summaries(tasks: Sequence) -> Dict[str, GroupSummary]:
    """Summary for every task that has children or is typed group."""
    stats = compute_budget_stats(tasks)
    parent_ids = {t.parent_task_id for t in tasks if t.parent_task_id}
    return {
        t.id: get_group_summary(t, tasks, stats)
        for t in tasks
        if t.is_group or t.id in parent_ids
    }


def group_display_range(group, summary: GroupSummary) -> Tuple[Optional[date], Optional[date]]:
    """
    Plan range to draw for a group row.

    The rolled-up range when the group has leaves, otherwise the group's own
    stored plan dates.
    """
    if summary.count > 0:
        return summary.min_start_date, summary.max_end_date
    return group.plan_start_date, group.plan_end_date


def get_category_summary(bucket, tasks: Sequence, stats=None) -> Dict[str, Any]:
    """
    Summary of a category bucket over the leaves of its root tasks' subtrees.

    Progress here is a plain mean over the leaves, matching the category
    header rows.
    """
    if stats is None:
        stats = compute_budget_stats(tasks)

    leaves = get_leaf_tasks(bucket.all_tasks(tasks))
    total_cost = sum(t.cost or 0 for t in leaves)
    total_weight = sum(task_weight(t, stats) for t in leaves)
    avg_progress = sum(t.progress or 0 for t in leaves) / len(leaves) if leaves else 0

    starts = [t.plan_start_date for t in leaves if t.has_plan_range()]
    ends = [t.plan_end_date for t in leaves if t.has_plan_range()]
    date_range = None
    if starts and ends:
        start, end = min(starts), max(ends)
        date_range = {"start": start, "end": end, "days": days_between(end, start) + 1}

    return {
        "count": len(leaves),
        "total_cost": total_cost,
        "total_weight": total_weight,
        "avg_progress": avg_progress,
        "date_range": date_range,
    }
