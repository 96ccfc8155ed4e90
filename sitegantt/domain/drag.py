from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Any, Dict, FrozenSet

from sitegantt.utils.dates import days_between, format_date, parse_date
from sitegantt.utils.exceptions import SiteGanttError


class BarType(Enum):
    """
    Enum representing which bar of a task row a gesture grabbed.
    """

    PLAN = "plan"
    ACTUAL = "actual"


class DragOperation(Enum):
    """
    Enum representing what a pointer gesture does to the grabbed bar.
    """

    MOVE = "move"
    RESIZE_LEFT = "resize-left"
    RESIZE_RIGHT = "resize-right"


class DragError(SiteGanttError):
    """Exception raised for invalid drag gestures."""

    pass


@dataclass(frozen=True)
class DragState:
    """
    Snapshot of an in-progress pointer gesture on a Gantt bar.

    Exists only between gesture start and release. ``affected_descendant_ids``
    are the tasks previewed as moving with the dragged task (plan-bar moves
    only).
    """

    task_id: str
    bar_type: BarType
    op_type: DragOperation
    start_x: float
    original_start: date
    original_end: date
    current_start: date
    current_end: date
    affected_descendant_ids: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def has_moved(self) -> bool:
        return (
            self.current_start != self.original_start
            or self.current_end != self.original_end
        )

    @property
    def start_delta(self) -> int:
        return days_between(self.current_start, self.original_start)

    @property
    def end_delta(self) -> int:
        return days_between(self.current_end, self.original_end)

    def with_range(self, start: date, end: date) -> "DragState":
        return replace(self, current_start=start, current_end=end)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "bar_type": self.bar_type.value,
            "op_type": self.op_type.value,
            "start_x": self.start_x,
            "original_start": format_date(self.original_start),
            "original_end": format_date(self.original_end),
            "current_start": format_date(self.current_start),
            "current_end": format_date(self.current_end),
            "affected_descendant_ids": sorted(self.affected_descendant_ids),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DragState":
        try:
            return cls(
                task_id=data["task_id"],
                bar_type=BarType(data["bar_type"]),
                op_type=DragOperation(data["op_type"]),
                start_x=float(data.get("start_x", 0)),
                original_start=parse_date(data["original_start"]),
                original_end=parse_date(data["original_end"]),
                current_start=parse_date(data["current_start"]),
                current_end=parse_date(data["current_end"]),
                affected_descendant_ids=frozenset(data.get("affected_descendant_ids", ())),
            )
        except (KeyError, ValueError) as e:
            raise DragError(f"Invalid drag state data: {e}") from e


def coerce_bar_type(value) -> BarType:
    if isinstance(value, BarType):
        return value
    try:
        return BarType(value)
    except ValueError:
        raise DragError(f"Invalid bar type: {value}. Must be 'plan' or 'actual'")


def coerce_operation(value) -> DragOperation:
    if isinstance(value, DragOperation):
        return value
    try:
        return DragOperation(value)
    except ValueError:
        valid = [op.value for op in DragOperation]
        raise DragError(f"Invalid drag operation: {value}. Must be one of {valid}")

