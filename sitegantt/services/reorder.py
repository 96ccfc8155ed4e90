"""
Reorder Planner - row drag and drop within the task list
"""

import logging
from enum import Enum
from typing import Dict, Optional, Sequence

from sitegantt.config import GanttConfig
from sitegantt.services.hierarchy import children_by_parent, get_descendant_ids
from sitegantt.utils.exceptions import SiteGanttError
from sitegantt.utils.graph import index_tasks

logger = logging.getLogger(__name__)


class DropPosition(Enum):
    ABOVE = "above"
    BELOW = "below"
    CHILD = "child"


class ReorderError(SiteGanttError):
    """Raised when a row drop cannot be applied."""

    pass


def is_group_target(target, tasks: Sequence) -> bool:
    return target.is_group or bool(children_by_parent(tasks).get(target.id))


def classify_drop(
    target,
    relative_y: float,
    row_height: float,
    config: Optional[GanttConfig] = None,
    tasks: Sequence = (),
) -> DropPosition:
    """
    Drop intent from the pointer position within the target row.

    Groups: top edge above, bottom edge below, middle nests as child.
    Leaves: top half above, bottom half below.
    """
    config = config or GanttConfig()
    if row_height <= 0:
        raise ReorderError(f"Row height must be positive, got {row_height}")

    if is_group_target(target, tasks):
        edge = row_height * config.group_drop_edge
        if relative_y < edge:
            return DropPosition.ABOVE
        if relative_y > row_height - edge:
            return DropPosition.BELOW
        return DropPosition.CHILD

    if relative_y < row_height * config.leaf_drop_edge:
        return DropPosition.ABOVE
    return DropPosition.BELOW


def siblings_of(target, tasks: Sequence, exclude_id: Optional[str] = None):
    """Tasks sharing the target's (parent, category) scope, sorted by order."""
    siblings = [
        t
        for t in tasks
        if t.parent_task_id == target.parent_task_id
        and t.category == target.category
        and t.id != exclude_id
    ]
    siblings.sort(key=lambda t: t.order)
    return siblings


def next_order(orders) -> float:
    """One past the largest order, or 1 for an empty list."""
    orders = [o or 0 for o in orders]
    return max(orders) + 1 if orders else 1


def neighbour_order(target, position: DropPosition, siblings: Sequence) -> float:
    """
    Order value that places a row directly above or below ``target``.

    Midpoint with the neighbour on that side, or one step beyond the target
    at either end of the sibling list.
    """
    index = next(i for i, t in enumerate(siblings) if t.id == target.id)
    if position == DropPosition.ABOVE:
        if index == 0:
            return target.order - 1
        return (siblings[index - 1].order + target.order) / 2
    if index == len(siblings) - 1:
        return target.order + 1
    return (target.order + siblings[index + 1].order) / 2


def plan_reorder(source_id: str, target_id: str, position, tasks: Sequence) -> Dict:
    """
    Partial update that moves ``source_id`` relative to ``target_id``.

    Args:
        source_id: The dragged task
        target_id: The task it was dropped on
        position: DropPosition (or its string value)
        tasks: Current task list

    Returns:
        dict: parent_task_id, category, subcategory, subsubcategory and order

    Raises:
        ReorderError: Dropping onto itself, into its own subtree, nesting
            under a leaf, or an unknown task id
    """
    position = DropPosition(position) if not isinstance(position, DropPosition) else position
    indexed = index_tasks(tasks)
    if source_id not in indexed:
        raise ReorderError(f"Unknown task: {source_id}")
    if target_id not in indexed:
        raise ReorderError(f"Unknown drop target: {target_id}")
    if source_id == target_id:
        raise ReorderError("Cannot drop a task onto itself")
    if target_id in get_descendant_ids(source_id, tasks):
        raise ReorderError(
            f"Cannot move {source_id} into its own subtree",
            {"source_id": source_id, "target_id": target_id},
        )

    target = indexed[target_id]

    if position == DropPosition.CHILD:
        if not is_group_target(target, tasks):
            raise ReorderError(f"Task {target_id} is not a group")
        order = next_order(
            t.order for t in tasks if t.parent_task_id == target_id and t.id != source_id
        )
        return {
            "parent_task_id": target_id,
            "category": target.category,
            "subcategory": target.subcategory or "",
            "subsubcategory": target.subsubcategory or "",
            "order": order,
        }

    siblings = siblings_of(target, tasks, exclude_id=source_id)
    order = neighbour_order(target, position, siblings)
    logger.debug("Placing %s %s %s at order %s", source_id, position.value, target_id, order)
    return {
        "parent_task_id": target.parent_task_id,
        "category": target.category,
        "subcategory": target.subcategory or "",
        "subsubcategory": target.subsubcategory or "",
        "order": order,
    }


def move_to_scope(
    source_id: str,
    tasks: Sequence,
    category: str,
    subcategory: str = "",
    subsubcategory: str = "",
) -> Dict:
    """Make a task a root at the end of a category path (drop on a header)."""
    indexed = index_tasks(tasks)
    if source_id not in indexed:
        raise ReorderError(f"Unknown task: {source_id}")
    order = next_order(
        t.order
        for t in tasks
        if t.parent_task_id is None
        and t.category == category
        and t.subcategory == (subcategory or "")
        and t.subsubcategory == (subsubcategory or "")
        and t.id != source_id
    )
    return {
        "parent_task_id": None,
        "category": category,
        "subcategory": subcategory or "",
        "subsubcategory": subsubcategory or "",
        "order": order,
    }

