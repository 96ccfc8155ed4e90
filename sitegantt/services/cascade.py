"""
Cascade Propagator
==================

Turns a released gesture into the set of task updates it implies:

- plan-bar move: the task, every subtree descendant translated rigidly by
  the same number of days, and every task reachable through the successor
  relation shifted by that delta;
- plan-bar resize-right: the task, and its dependency chain shifted by the
  end-date delta;
- plan-bar resize-left: only the task;
- actual bar: the task's actual range with progress recomputed from the
  actual/planned duration ratio. Actual edits never cascade.

The delta is carried unchanged along dependency chains; every shifted date
is computed from the snapshot passed in, never from a previous patch.
"""

import logging
from collections import deque, namedtuple
from typing import Dict, List, Optional, Sequence, Tuple

from sitegantt.domain.drag import BarType, DragError, DragOperation
from sitegantt.services.hierarchy import get_descendant_ids
from sitegantt.utils.dates import days_between, format_date, round_half_up
from sitegantt.utils.graph import build_dependency_graph, closes_cycle, index_tasks

logger = logging.getLogger(__name__)

DESCENDANT = "descendant"
DEPENDENCY = "dependency"

DatePatch = namedtuple("DatePatch", ["id", "start", "end", "reason"])


class CascadePlan:
    """All updates produced by one committed gesture."""

    def __init__(self, task_id: str, main_fields: Dict):
        self.task_id = task_id
        self.main_fields = main_fields
        self.patches: List[DatePatch] = []
        self.cycle_warnings: List[Tuple[str, str]] = []

    @property
    def has_dependency_updates(self) -> bool:
        return any(p.reason == DEPENDENCY for p in self.patches)

    @property
    def patched_ids(self) -> List[str]:
        return [p.id for p in self.patches]

    def updates(self) -> List[Tuple[str, Dict]]:
        """(task id, partial fields) pairs, the gesture's own task first."""
        result = [(self.task_id, dict(self.main_fields))]
        for patch in self.patches:
            result.append(
                (
                    patch.id,
                    {
                        "plan_start_date": format_date(patch.start),
                        "plan_end_date": format_date(patch.end),
                    },
                )
            )
        return result

    def __repr__(self) -> str:
        return (
            f"CascadePlan(task={self.task_id}, patches={len(self.patches)}, "
            f"cycles={len(self.cycle_warnings)})"
        )


def shift_descendants(task_id: str, delta: int, tasks: Dict) -> List[DatePatch]:
    """Rigid translation of every subtree descendant by ``delta`` days."""
    patches = []
    if delta == 0:
        return patches
    for descendant_id in sorted(get_descendant_ids(task_id, tasks)):
        task = tasks[descendant_id]
        if not task.has_plan_range():
            continue
        start, end = task.shifted_plan(delta)
        patches.append(DatePatch(descendant_id, start, end, DESCENDANT))
    return patches


def cascade_dependencies(task_id: str, delta: int, tasks: Dict, already_shifted=()) -> Tuple[List[DatePatch], List[Tuple[str, str]]]:
    """
    Breadth-first shift of the successor chain of ``task_id``.

    Each successor is shifted once by ``delta`` and its own successors are
    queued with the same delta. Successors already shifted (including the
    starting task and ``already_shifted``) are not patched again but are
    still traversed. An edge back into an already processed task that lies
    on a cycle is reported and not followed.

    Returns:
        tuple: (patches, cycle edges as (from_id, to_id))
    """
    patches: List[DatePatch] = []
    cycle_edges: List[Tuple[str, str]] = []
    if delta == 0:
        return patches, cycle_edges

    graph = build_dependency_graph(tasks)
    if task_id not in graph:
        return patches, cycle_edges

    queue = deque([(task_id, delta)])
    processed = set()
    shifted = {task_id} | set(already_shifted)

    while queue:
        current_id, shift = queue.popleft()
        if current_id in processed:
            continue
        processed.add(current_id)

        for succ_id in graph.successors(current_id):
            if succ_id in processed or succ_id == task_id:
                if closes_cycle(graph, current_id, succ_id):
                    logger.warning(
                        "Dependency cycle detected: %s -> %s revisits a shifted task",
                        current_id,
                        succ_id,
                    )
                    cycle_edges.append((current_id, succ_id))
                continue

            if succ_id not in shifted:
                shifted.add(succ_id)
                succ = tasks[succ_id]
                if succ.has_plan_range():
                    start, end = succ.shifted_plan(shift)
                    patches.append(DatePatch(succ_id, start, end, DEPENDENCY))
                else:
                    logger.debug("Task %s has no planned dates to shift", succ_id)

            queue.append((succ_id, shift))

    return patches, cycle_edges


def plan_commit(drag_state, tasks: Dict) -> CascadePlan:
    plan = CascadePlan(
        drag_state.task_id,
        {
            "plan_start_date": format_date(drag_state.current_start),
            "plan_end_date": format_date(drag_state.current_end),
        },
    )

    if drag_state.op_type == DragOperation.MOVE:
        shift = drag_state.start_delta
        plan.patches.extend(shift_descendants(drag_state.task_id, shift, tasks))
    elif drag_state.op_type == DragOperation.RESIZE_RIGHT:
        shift = drag_state.end_delta
    else:
        shift = 0

    dependency_patches, cycles = cascade_dependencies(
        drag_state.task_id, shift, tasks, already_shifted=plan.patched_ids
    )
    plan.patches.extend(dependency_patches)
    plan.cycle_warnings.extend(cycles)
    return plan


def progress_from_actual(task, start, end) -> Optional[int]:
    """Percent of the planned duration covered by an actual range, clamped to 0-100."""
    if not task.has_plan_range():
        return None
    plan_duration = days_between(task.plan_end_date, task.plan_start_date) + 1
    if plan_duration <= 0:
        return None
    actual_duration = days_between(end, start) + 1
    return max(0, min(100, round_half_up(actual_duration / plan_duration * 100)))


def actual_commit(drag_state, tasks: Dict) -> CascadePlan:
    fields = {
        "actual_start_date": format_date(drag_state.current_start),
        "actual_end_date": format_date(drag_state.current_end),
    }
    progress = progress_from_actual(
        tasks[drag_state.task_id], drag_state.current_start, drag_state.current_end
    )
    if progress is not None:
        fields["progress"] = progress
    return CascadePlan(drag_state.task_id, fields)


def compute_commit_plan(drag_state, snapshot: Sequence) -> CascadePlan:
    """
    Updates implied by a released gesture, computed against ``snapshot``.

    Args:
        drag_state: The released gesture
        snapshot: The latest task list (read at commit time, not at gesture start)

    Returns:
        CascadePlan: Main update plus descendant and dependency patches

    Raises:
        DragError: If the dragged task is not in the snapshot
    """
    tasks = snapshot if isinstance(snapshot, dict) else index_tasks(snapshot)
    if drag_state.task_id not in tasks:
        raise DragError(f"Task {drag_state.task_id} no longer exists")

    if drag_state.bar_type == BarType.ACTUAL:
        return actual_commit(drag_state, tasks)
    return plan_commit(drag_state, tasks)


def apply_updates(snapshot: Sequence, updates: Sequence[Tuple[str, Dict]]) -> List:
    """
    Apply updates to copies of the tasks (the local projection).

    The input tasks are not modified. All updates are validated before the
    projection is returned, so a bad update leaves nothing half applied.
    """
    by_id: Dict[str, Dict] = {}
    for task_id, fields in updates:
        by_id.setdefault(task_id, {}).update(fields)

    projection = []
    for task in snapshot:
        if task.id in by_id:
            task = task.copy().update(by_id[task.id])
        projection.append(task)
    return projection
