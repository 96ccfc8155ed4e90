import logging
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from sitegantt.utils.dates import (
    DateLike,
    add_days,
    format_date,
    inclusive_duration,
    parse_date,
    round_half_up,
)
from sitegantt.utils.exceptions import SiteGanttError

logger = logging.getLogger(__name__)


class TaskStatus(Enum):
    """
    Enum representing the possible status values of a task.
    """

    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class TaskType(Enum):
    """
    Enum representing the kind of schedule row a task is.
    """

    TASK = "task"
    GROUP = "group"


class TaskError(SiteGanttError):
    """Exception raised for errors in the Task class."""

    pass


# Storage (camelCase) keys accepted by Task.from_dict
FIELD_ALIASES = {
    "projectId": "project_id",
    "parentTaskId": "parent_task_id",
    "planStartDate": "plan_start_date",
    "planEndDate": "plan_end_date",
    "actualStartDate": "actual_start_date",
    "actualEndDate": "actual_end_date",
}

DATE_FIELDS = (
    "plan_start_date",
    "plan_end_date",
    "actual_start_date",
    "actual_end_date",
)

PATCHABLE_FIELDS = (
    "project_id",
    "name",
    "type",
    "category",
    "subcategory",
    "subsubcategory",
    "order",
    "plan_start_date",
    "plan_end_date",
    "actual_start_date",
    "actual_end_date",
    "progress",
    "cost",
    "status",
    "parent_task_id",
    "predecessors",
    "color",
)


class Task:
    """
    Represents one row of a construction schedule.

    A task is either a leaf work item or a group that contains other tasks
    through ``parent_task_id``. Groups never carry authoritative cost,
    progress or dates for display; those are rolled up from their leaves.
    Dates are inclusive calendar days.
    """

    def __init__(
        self,
        id: str,
        project_id: str = "",
        name: str = "",
        type: str = "task",
        category: str = "",
        subcategory: str = "",
        subsubcategory: str = "",
        order: float = 0,
        plan_start_date: DateLike = None,
        plan_end_date: DateLike = None,
        actual_start_date: DateLike = None,
        actual_end_date: DateLike = None,
        progress: float = 0,
        cost: float = 0,
        status: str = "not-started",
        parent_task_id: Optional[str] = None,
        predecessors: Optional[List[str]] = None,
        color: Optional[str] = None,
    ):
        """
        Initialize a new Task.

        Args:
            id: Unique identifier for the task
            project_id: Project the task belongs to
            name: Display name
            type: "task" or "group"
            category: Top level grouping path component
            subcategory: Second level grouping path component
            subsubcategory: Third level grouping path component
            order: Sibling sort key within (parent, category)
            plan_start_date: Planned start (inclusive)
            plan_end_date: Planned end (inclusive)
            actual_start_date: Recorded start, if any
            actual_end_date: Recorded end, if any
            progress: Percent complete, 0-100
            cost: Budgeted cost, non-negative
            status: "not-started", "in-progress" or "completed"
            parent_task_id: Parent group id, None for a root task
            predecessors: Finish-to-start predecessor task ids
            color: Optional display hint

        Raises:
            TaskError: If any input validation fails
        """
        if id is None or str(id).strip() == "":
            raise TaskError("Task ID cannot be None or empty")
        self.id = str(id)

        self.project_id = project_id or ""
        self.name = name or ""
        self.type = type
        self.category = category or ""
        self.subcategory = subcategory or ""
        self.subsubcategory = subsubcategory or ""
        self.order = order
        self.plan_start_date = plan_start_date
        self.plan_end_date = plan_end_date
        self.actual_start_date = actual_start_date
        self.actual_end_date = actual_end_date
        self.progress = progress
        self.cost = cost
        self.status = status
        self.parent_task_id = parent_task_id
        self.predecessors = predecessors
        self.color = color

    # Dates are parsed on assignment; unparseable input is treated as absent.
    def _set_date(self, field: str, value: DateLike) -> None:
        parsed = parse_date(value)
        if parsed is None and value not in (None, ""):
            logger.warning("Task %s: ignoring unparseable %s %r", self.id, field, value)
        setattr(self, f"_{field}", parsed)

    @property
    def plan_start_date(self) -> Optional[date]:
        return self._plan_start_date

    @plan_start_date.setter
    def plan_start_date(self, value: DateLike):
        self._set_date("plan_start_date", value)

    @property
    def plan_end_date(self) -> Optional[date]:
        return self._plan_end_date

    @plan_end_date.setter
    def plan_end_date(self, value: DateLike):
        self._set_date("plan_end_date", value)

    @property
    def actual_start_date(self) -> Optional[date]:
        return self._actual_start_date

    @actual_start_date.setter
    def actual_start_date(self, value: DateLike):
        self._set_date("actual_start_date", value)

    @property
    def actual_end_date(self) -> Optional[date]:
        return self._actual_end_date

    @actual_end_date.setter
    def actual_end_date(self, value: DateLike):
        self._set_date("actual_end_date", value)

    @property
    def type(self) -> str:
        """Get the task type ("task" or "group")."""
        return self._type.value

    @type.setter
    def type(self, value: str):
        try:
            self._type = TaskType(value or "task")
        except ValueError:
            valid_types = [t.value for t in TaskType]
            raise TaskError(f"Invalid task type: {value}. Must be one of {valid_types}")

    @property
    def status(self) -> str:
        """Get the current status of the task."""
        return self._status.value

    @status.setter
    def status(self, value: str):
        try:
            self._status = TaskStatus(value or "not-started")
        except ValueError:
            valid_statuses = [s.value for s in TaskStatus]
            raise TaskError(f"Invalid status: {value}. Must be one of {valid_statuses}")

    @property
    def progress(self) -> float:
        return self._progress

    @progress.setter
    def progress(self, value: float):
        if value is None:
            value = 0
        if not isinstance(value, (int, float)) or value < 0 or value > 100:
            raise TaskError(f"Progress must be a number between 0 and 100, got {value!r}")
        self._progress = value

    @property
    def cost(self) -> float:
        return self._cost

    @cost.setter
    def cost(self, value: float):
        if value is None:
            value = 0
        if not isinstance(value, (int, float)) or value < 0:
            raise TaskError(f"Cost must be a non-negative number, got {value!r}")
        self._cost = value

    @property
    def order(self) -> float:
        return self._order

    @order.setter
    def order(self, value: float):
        if value is None:
            value = 0
        if not isinstance(value, (int, float)):
            raise TaskError(f"Order must be a number, got {value!r}")
        self._order = value

    @property
    def predecessors(self) -> List[str]:
        return self._predecessors

    @predecessors.setter
    def predecessors(self, value: Optional[List[str]]):
        if value is None:
            value = []
        if not isinstance(value, (list, tuple)):
            raise TaskError("Predecessors must be a list of task IDs")
        self._predecessors = [str(p) for p in value]

    @property
    def parent_task_id(self) -> Optional[str]:
        return self._parent_task_id

    @parent_task_id.setter
    def parent_task_id(self, value: Optional[str]):
        self._parent_task_id = str(value) if value not in (None, "") else None

    @property
    def is_group(self) -> bool:
        return self._type == TaskType.GROUP

    @property
    def plan_duration(self) -> int:
        """Inclusive planned duration in days, never less than one."""
        return inclusive_duration(self.plan_start_date, self.plan_end_date)

    def has_plan_range(self) -> bool:
        return self.plan_start_date is not None and self.plan_end_date is not None

    def shifted_plan(self, days: int) -> Tuple[Optional[date], Optional[date]]:
        """
        Planned range translated by a whole number of days.

        Missing dates stay missing.
        """
        start = add_days(self.plan_start_date, days) if self.plan_start_date else None
        end = add_days(self.plan_end_date, days) if self.plan_end_date else None
        return start, end

    def effective_actual_end(self) -> Optional[date]:
        """
        End of the recorded progress.

        The actual end date when set; otherwise, with progress, the actual
        start plus the share of the planned duration already achieved;
        otherwise the actual start itself.
        """
        if self.actual_start_date is None:
            return None
        if self.actual_end_date is not None:
            return self.actual_end_date
        if self.progress > 0:
            progress_days = round_half_up(self.plan_duration * (self.progress / 100))
            return add_days(self.actual_start_date, max(0, progress_days - 1))
        return self.actual_start_date

    def actual_range(self) -> Optional[Tuple[date, date]]:
        """
        Range drawn for the actual bar, or None when there is nothing to show.

        A task with progress but no recorded start is drawn from its planned
        start.
        """
        has_progress = self.progress > 0
        if self.actual_start_date is None and not has_progress:
            return None

        start = self.actual_start_date or self.plan_start_date
        if start is None:
            return None

        if self.actual_end_date is not None:
            end = self.actual_end_date
        elif has_progress:
            progress_days = round_half_up(self.plan_duration * (self.progress / 100))
            end = add_days(start, max(0, progress_days - 1))
        else:
            end = start
        return start, end

    def update(self, fields: Dict[str, Any]) -> "Task":
        """
        Apply a partial update in place.

        Args:
            fields: Mapping of field name to new value (storage aliases allowed)

        Returns:
            self: For method chaining

        Raises:
            TaskError: If a field is unknown or a value is invalid
        """
        for key, value in fields.items():
            key = FIELD_ALIASES.get(key, key)
            if key not in PATCHABLE_FIELDS:
                raise TaskError(f"Unknown task field: {key}")
            setattr(self, key, value)
        return self

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert task to a dictionary representation.

        Returns:
            dict: Dictionary representation of the task, dates as YYYY-MM-DD
        """
        result = {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "type": self.type,
            "category": self.category,
            "subcategory": self.subcategory,
            "subsubcategory": self.subsubcategory,
            "order": self.order,
            "progress": self.progress,
            "cost": self.cost,
            "status": self.status,
            "parent_task_id": self.parent_task_id,
            "predecessors": list(self.predecessors),
            "color": self.color,
        }
        for attr in DATE_FIELDS:
            value = getattr(self, attr)
            result[attr] = format_date(value) if value else None
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """
        Create a task from a dictionary representation.

        Args:
            data: Dictionary with snake_case or storage camelCase keys

        Returns:
            Task: New task instance
        """
        fields = {FIELD_ALIASES.get(k, k): v for k, v in data.items()}
        if "id" not in fields:
            raise TaskError("Task data must include an id")
        kwargs = {k: v for k, v in fields.items() if k in PATCHABLE_FIELDS}
        return cls(id=fields["id"], **kwargs)

    def copy(self) -> "Task":
        """
        Create a deep copy of this task.

        Returns:
            Task: New task instance with the same properties
        """
        return self.from_dict(self.to_dict())

    def __eq__(self, other) -> bool:
        if not isinstance(other, Task):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self):
        return hash(self.id)

    def __repr__(self) -> str:
        plan = f"{format_date(self.plan_start_date)}..{format_date(self.plan_end_date)}"
        parent_str = f", parent={self.parent_task_id}" if self.parent_task_id else ""
        return (
            f"Task(id={self.id}, name={self.name}, type={self.type}, plan={plan}, "
            f"progress={self.progress}{parent_str})"
        )
