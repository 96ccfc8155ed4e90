"""
SiteGantt Schedule Engine
=========================

Task scheduling and progress accumulation for construction Gantt charts.

Available modules:
- domain: Task, Project, Expense and DragState entities
- services: coordinate mapping, weighting, hierarchy, rollup, drag,
  cascade, reorder, accumulation, earned value and the session controller
- visualization: Gantt and S-curve charts
"""

from sitegantt.config import GanttConfig
from sitegantt.domain.drag import BarType, DragOperation, DragState
from sitegantt.domain.project import Expense, Project
from sitegantt.domain.task import Task, TaskStatus, TaskType
from sitegantt.services.accumulation import compute_scurve
from sitegantt.services.cascade import compute_commit_plan
from sitegantt.services.commit import GanttSession, InMemoryStore
from sitegantt.services.evm import compute_evm
from sitegantt.services.rollup import get_group_summary
from sitegantt.utils.exceptions import SiteGanttError

__version__ = "0.1.0"

__all__ = [
    "GanttConfig",
    "BarType",
    "DragOperation",
    "DragState",
    "Expense",
    "Project",
    "Task",
    "TaskStatus",
    "TaskType",
    "compute_scurve",
    "compute_commit_plan",
    "GanttSession",
    "InMemoryStore",
    "compute_evm",
    "get_group_summary",
    "SiteGanttError",
]
