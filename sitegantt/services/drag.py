"""
Drag/Edit State Machine
=======================

idle -> dragging -> committing -> idle

Pointer moves are coalesced: only the most recent pointer position is
evaluated, once per animation frame. Nothing is persisted until release.
"""

import logging
from typing import Optional, Sequence

from sitegantt.config import GanttConfig
from sitegantt.domain.drag import (
    BarType,
    DragError,
    DragOperation,
    DragState,
    coerce_bar_type,
    coerce_operation,
)
from sitegantt.services.hierarchy import get_descendant_ids
from sitegantt.utils.dates import add_days, round_half_up

logger = logging.getLogger(__name__)

IDLE = "idle"
DRAGGING = "dragging"
COMMITTING = "committing"


def days_delta(delta_px: float, config: GanttConfig) -> int:
    """Whole days represented by a horizontal pointer movement."""
    return round_half_up(delta_px / config.pixels_per_day)


def original_range(task, bar_type: BarType):
    """
    Range grabbed at gesture start.

    Plan bar: the planned dates. Actual bar: the actual start (or planned
    start), ending at the effective actual end when there is progress, or a
    single day when there is none.
    """
    if bar_type == BarType.PLAN:
        if not task.has_plan_range():
            raise DragError(f"Task {task.id} has no planned dates to drag")
        return task.plan_start_date, max(task.plan_start_date, task.plan_end_date)

    start = task.actual_start_date or task.plan_start_date
    if start is None:
        raise DragError(f"Task {task.id} has no dates to drag")

    if task.progress > 0:
        actual = task.actual_range()
        end = actual[1] if actual else start
    else:
        end = start
    return start, max(start, end)


def preview_range(state: DragState, delta_px: float, config: GanttConfig):
    """
    Current range for a pointer offset from the gesture start.

    Resizes clamp the moving edge to the fixed edge so the range never
    inverts.
    """
    delta = days_delta(delta_px, config)
    start, end = state.original_start, state.original_end

    if state.op_type == DragOperation.MOVE:
        start = add_days(start, delta)
        end = add_days(end, delta)
    elif state.op_type == DragOperation.RESIZE_LEFT:
        start = min(add_days(start, delta), end)
    elif state.op_type == DragOperation.RESIZE_RIGHT:
        end = max(add_days(end, delta), start)

    return start, end


class DragController:
    """
    Owns the gesture state for one Gantt view.

    The controller is the only holder of the ``DragState``; pure functions
    receive it as an argument.
    """

    def __init__(self, config: Optional[GanttConfig] = None):
        self.config = config or GanttConfig()
        self.state = IDLE
        self.drag_state: Optional[DragState] = None
        self._pending_x: Optional[float] = None

    @property
    def is_dragging(self) -> bool:
        return self.state == DRAGGING

    def start(self, task, op_type, bar_type, client_x: float, tasks: Sequence = ()) -> DragState:
        """
        Begin a gesture on a task's bar.

        Args:
            task: The grabbed task
            op_type: "move", "resize-left" or "resize-right"
            bar_type: "plan" or "actual"
            client_x: Pointer x at gesture start
            tasks: Current task list, used to preview subtree moves

        Returns:
            DragState: The new gesture state

        Raises:
            DragError: If a gesture is already active or the inputs are invalid
        """
        if self.state != IDLE:
            raise DragError(f"Cannot start a drag while {self.state}")

        op_type = coerce_operation(op_type)
        bar_type = coerce_bar_type(bar_type)
        start, end = original_range(task, bar_type)

        affected = frozenset()
        if op_type == DragOperation.MOVE and bar_type == BarType.PLAN:
            affected = frozenset(get_descendant_ids(task.id, tasks))

        self.drag_state = DragState(
            task_id=task.id,
            bar_type=bar_type,
            op_type=op_type,
            start_x=client_x,
            original_start=start,
            original_end=end,
            current_start=start,
            current_end=end,
            affected_descendant_ids=affected,
        )
        self._pending_x = None
        self.state = DRAGGING
        logger.debug("Drag started: %s", self.drag_state.to_dict())
        return self.drag_state

    def pointer_move(self, client_x: float) -> bool:
        """
        Record a pointer position.

        Returns:
            bool: True if this move needs a new animation frame, False if a
            frame is already pending (the pending frame will use this position)
        """
        if self.state != DRAGGING:
            raise DragError("Pointer move received with no active drag")
        needs_frame = self._pending_x is None
        self._pending_x = client_x
        return needs_frame

    def animation_frame(self) -> Optional[DragState]:
        """Evaluate the latest pointer position; no-op when nothing is pending."""
        if self.state != DRAGGING or self._pending_x is None:
            return self.drag_state

        delta_px = self._pending_x - self.drag_state.start_x
        self._pending_x = None
        start, end = preview_range(self.drag_state, delta_px, self.config)
        self.drag_state = self.drag_state.with_range(start, end)
        return self.drag_state

    def release(self) -> Optional[DragState]:
        """
        End the gesture.

        Returns:
            DragState: The gesture to commit (state becomes committing), or
            None if the dates did not change (state becomes idle)
        """
        if self.state != DRAGGING:
            raise DragError("Release received with no active drag")

        self.animation_frame()
        final = self.drag_state
        if not final.has_moved:
            self.reset()
            return None

        self.state = COMMITTING
        return final

    def finish(self) -> None:
        """Mark the commit of the released gesture as done."""
        self.reset()

    def reset(self) -> None:
        self.state = IDLE
        self.drag_state = None
        self._pending_x = None
