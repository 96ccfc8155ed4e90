from datetime import date
from enum import Enum
from typing import Any, Dict, Optional

from sitegantt.utils.dates import DateLike, format_date, parse_date
from sitegantt.utils.exceptions import SiteGanttError


class ProjectStatus(Enum):
    """
    Enum representing the lifecycle status of a project.
    """

    PLANNING = "planning"
    IN_PROGRESS = "in-progress"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


INACTIVE_STATUSES = (ProjectStatus.COMPLETED, ProjectStatus.CANCELLED)


class ProjectError(SiteGanttError):
    """Exception raised for errors in the Project and Expense classes."""

    pass


class Project:
    """
    A construction project: supplies the default time window for charts and
    the active/inactive filter for portfolio reports.
    """

    def __init__(
        self,
        id: str,
        name: str,
        start_date: DateLike = None,
        end_date: DateLike = None,
        status: str = "planning",
        code: Optional[str] = None,
    ):
        if id is None or str(id).strip() == "":
            raise ProjectError("Project ID cannot be None or empty")
        self.id = str(id)

        if not name or not isinstance(name, str):
            raise ProjectError("Project name must be a non-empty string")
        self.name = name

        self.start_date: Optional[date] = parse_date(start_date)
        self.end_date: Optional[date] = parse_date(end_date)
        self.code = code

        try:
            self._status = ProjectStatus(status)
        except ValueError:
            valid = [s.value for s in ProjectStatus]
            raise ProjectError(f"Invalid project status: {status}. Must be one of {valid}")

    @property
    def status(self) -> str:
        return self._status.value

    @property
    def is_active(self) -> bool:
        return self._status not in INACTIVE_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "start_date": format_date(self.start_date) or None,
            "end_date": format_date(self.end_date) or None,
            "status": self.status,
            "code": self.code,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        return cls(
            id=data["id"],
            name=data["name"],
            start_date=data.get("start_date", data.get("startDate")),
            end_date=data.get("end_date", data.get("endDate")),
            status=data.get("status", "planning"),
            code=data.get("code"),
        )

    def __repr__(self) -> str:
        return f"Project(id={self.id}, name={self.name}, status={self.status})"


class Expense:
    """A recorded payment against a project; the source of Actual Cost."""

    def __init__(
        self,
        id: str,
        project_id: str,
        date: DateLike,
        amount: float,
        description: str = "",
        cost_code: Optional[str] = None,
    ):
        if id is None or str(id).strip() == "":
            raise ProjectError("Expense ID cannot be None or empty")
        self.id = str(id)
        self.project_id = project_id
        self.date = parse_date(date)

        if not isinstance(amount, (int, float)):
            raise ProjectError(f"Expense amount must be a number, got {amount!r}")
        self.amount = amount

        self.description = description
        self.cost_code = cost_code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "date": format_date(self.date) or None,
            "amount": self.amount,
            "description": self.description,
            "cost_code": self.cost_code,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Expense":
        return cls(
            id=data["id"],
            project_id=data.get("project_id", data.get("projectId")),
            date=data.get("date"),
            amount=data.get("amount", 0),
            description=data.get("description", ""),
            cost_code=data.get("cost_code", data.get("costCode")),
        )

    def __repr__(self) -> str:
        return f"Expense(id={self.id}, project={self.project_id}, amount={self.amount})"
