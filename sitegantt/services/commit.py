"""
Commit pipeline and session controller.

A released gesture is committed in two phases: the patch set is computed
against the latest snapshot and applied to a local projection, then every
update is sent to the store concurrently and awaited together. The task list
is always re-fetched afterwards. If any write fails the projection is
discarded and reloaded from the store; nothing is rolled back.
"""

import asyncio
import logging
import uuid
from typing import Dict, List, Optional, Protocol, Sequence

from sitegantt.config import GanttConfig
from sitegantt.domain.project import Expense, Project
from sitegantt.domain.task import Task
from sitegantt.services.accumulation import compute_scurve
from sitegantt.services.cascade import CascadePlan, apply_updates, compute_commit_plan
from sitegantt.services.coordinates import TimeRange
from sitegantt.services.drag import DragController
from sitegantt.services.evm import compute_evm
from sitegantt.services.reorder import move_to_scope, next_order, plan_reorder
from sitegantt.services.weighting import FINANCIAL
from sitegantt.utils.exceptions import SiteGanttError
from sitegantt.utils.graph import build_dependency_graph, index_tasks, would_create_cycle

logger = logging.getLogger(__name__)


class CommitError(SiteGanttError):
    """Raised when persisting a set of updates fails."""

    pass


class DependencyError(SiteGanttError):
    """Raised when a dependency link is invalid."""

    pass


class TaskStore(Protocol):
    async def get_tasks(self, project_id: str) -> List[Task]: ...

    async def update_task(self, task_id: str, fields: Dict) -> None: ...

    async def create_task(self, fields: Dict) -> str: ...


class ExpenseReader(Protocol):
    async def get_expenses(self, project_id: Optional[str] = None) -> List[Expense]: ...


class ProjectReader(Protocol):
    async def get_projects(self) -> List[Project]: ...


class InMemoryStore:
    """
    Task, expense and project store held in memory.

    Returned tasks are copies, so callers never share state with the store.
    """

    def __init__(self, tasks: Sequence[Task] = (), expenses: Sequence[Expense] = (), projects: Sequence[Project] = ()):
        self._tasks: Dict[str, Task] = {t.id: t.copy() for t in tasks}
        self.expenses = list(expenses)
        self.projects = list(projects)
        self.update_calls: List = []

    async def get_tasks(self, project_id: str) -> List[Task]:
        return [t.copy() for t in self._tasks.values() if t.project_id == project_id]

    async def update_task(self, task_id: str, fields: Dict) -> None:
        if task_id not in self._tasks:
            raise KeyError(f"Task {task_id} not found")
        self.update_calls.append((task_id, dict(fields)))
        updated = self._tasks[task_id].copy().update(fields)
        self._tasks[task_id] = updated

    async def create_task(self, fields: Dict) -> str:
        data = dict(fields)
        data.setdefault("id", uuid.uuid4().hex)
        task = Task.from_dict(data)
        if task.id in self._tasks:
            raise KeyError(f"Task {task.id} already exists")
        self._tasks[task.id] = task
        return task.id

    async def get_expenses(self, project_id: Optional[str] = None) -> List[Expense]:
        if project_id is None:
            return list(self.expenses)
        return [e for e in self.expenses if e.project_id == project_id]

    async def get_projects(self) -> List[Project]:
        return list(self.projects)


async def submit_updates(store: TaskStore, updates: Sequence) -> None:
    """
    Send every update concurrently and wait for all of them to settle.

    Raises the first write failure once no write is still in flight.
    """
    results = await asyncio.gather(
        *(store.update_task(task_id, fields) for task_id, fields in updates),
        return_exceptions=True,
    )
    failures = [(task_id, result) for (task_id, _), result in zip(updates, results) if isinstance(result, BaseException)]
    for task_id, error in failures[1:]:
        logger.error("Write for task %s also failed: %s", task_id, error)
    if failures:
        raise failures[0][1]


class GanttSession:
    """
    Interaction controller for one project's Gantt view.

    Holds the current task projection and the drag controller, and routes
    every edit through the store.
    """

    def __init__(self, store: TaskStore, project_id: str, config: Optional[GanttConfig] = None):
        self.store = store
        self.project_id = project_id
        self.config = config or GanttConfig()
        self.drag = DragController(self.config)
        self.tasks: List[Task] = []
        self.last_plan: Optional[CascadePlan] = None
        self.sleep = asyncio.sleep

    async def load(self) -> List[Task]:
        self.tasks = await self.store.get_tasks(self.project_id)
        logger.debug("Loaded %d tasks for project %s", len(self.tasks), self.project_id)
        return self.tasks

    def task(self, task_id: str) -> Task:
        for task in self.tasks:
            if task.id == task_id:
                return task
        raise KeyError(f"Task {task_id} not found")

    # Gestures

    def start_drag(self, task_id: str, op_type, bar_type, client_x: float):
        return self.drag.start(self.task(task_id), op_type, bar_type, client_x, self.tasks)

    def pointer_move(self, client_x: float) -> bool:
        return self.drag.pointer_move(client_x)

    def animation_frame(self):
        return self.drag.animation_frame()

    async def release(self) -> Optional[CascadePlan]:
        """Finish the gesture and commit it if any date changed."""
        final = self.drag.release()
        if final is None:
            return None
        try:
            return await self.commit(final)
        finally:
            self.drag.finish()

    async def commit(self, drag_state) -> CascadePlan:
        """
        Persist a released gesture.

        Raises:
            CommitError: If any store write fails (the projection is reloaded)
        """
        plan = compute_commit_plan(drag_state, self.tasks)
        for edge in plan.cycle_warnings:
            logger.warning("Cascade stopped at dependency cycle edge %s -> %s", *edge)

        updates = plan.updates()
        self.tasks = apply_updates(self.tasks, updates)
        self.last_plan = plan

        if plan.has_dependency_updates and self.config.cascade_pause_ms > 0:
            await self.sleep(self.config.cascade_pause_ms / 1000)

        await self._persist(updates)
        return plan

    async def _persist(self, updates: Sequence) -> None:
        try:
            await submit_updates(self.store, updates)
        except Exception as exc:
            logger.error("Failed to save %d task updates: %s", len(updates), exc)
            self.tasks = []
            await self.load()
            raise CommitError(
                f"Failed to save task updates: {exc}",
                {"task_ids": [task_id for task_id, _ in updates]},
            ) from exc
        await self.load()

    # Row edits

    async def reorder(self, source_id: str, target_id: str, position) -> Dict:
        fields = plan_reorder(source_id, target_id, position, self.tasks)
        await self._apply_single(source_id, fields)
        return fields

    async def move_to_category(self, source_id: str, category: str, subcategory: str = "", subsubcategory: str = "") -> Dict:
        fields = move_to_scope(source_id, self.tasks, category, subcategory, subsubcategory)
        await self._apply_single(source_id, fields)
        return fields

    async def add_task(self, fields: Dict) -> str:
        """
        Create a task at the end of its (parent, category) sibling list.

        An explicit ``order`` in ``fields`` is kept.
        """
        data = dict(fields)
        data.setdefault("project_id", self.project_id)
        parent_id = data.get("parent_task_id", data.get("parentTaskId")) or None
        if "order" not in data:
            data["order"] = next_order(
                t.order
                for t in self.tasks
                if t.parent_task_id == parent_id and t.category == (data.get("category") or "")
            )
        task_id = await self.store.create_task(data)
        await self.load()
        return task_id

    async def link_dependency(self, predecessor_id: str, successor_id: str) -> bool:
        """
        Add ``predecessor_id`` to the successor's predecessors.

        Returns:
            bool: False if the link already existed

        Raises:
            DependencyError: Self links, unknown tasks, or links closing a cycle
        """
        indexed = index_tasks(self.tasks)
        if predecessor_id == successor_id:
            raise DependencyError("A task cannot depend on itself")
        for task_id in (predecessor_id, successor_id):
            if task_id not in indexed:
                raise DependencyError(f"Unknown task: {task_id}")

        successor = indexed[successor_id]
        if predecessor_id in successor.predecessors:
            return False

        if would_create_cycle(build_dependency_graph(self.tasks), predecessor_id, successor_id):
            raise DependencyError(
                f"Linking {predecessor_id} -> {successor_id} would create a dependency cycle",
                {"predecessor_id": predecessor_id, "successor_id": successor_id},
            )

        await self._apply_single(successor_id, {"predecessors": successor.predecessors + [predecessor_id]})
        return True

    async def unlink_dependency(self, predecessor_id: str, successor_id: str) -> bool:
        successor = self.task(successor_id)
        if predecessor_id not in successor.predecessors:
            return False
        remaining = [p for p in successor.predecessors if p != predecessor_id]
        await self._apply_single(successor_id, {"predecessors": remaining})
        return True

    async def _apply_single(self, task_id: str, fields: Dict) -> None:
        updates = [(task_id, fields)]
        self.tasks = apply_updates(self.tasks, updates)
        await self._persist(updates)

    # Reports

    async def evm(self, expenses: ExpenseReader, as_of=None) -> Dict[str, float]:
        return compute_evm(self.tasks, await expenses.get_expenses(self.project_id), as_of)

    async def scurve(self, projects: Optional[ProjectReader] = None, mode: str = FINANCIAL, as_of=None):
        project = None
        if projects is not None:
            project = next((p for p in await projects.get_projects() if p.id == self.project_id), None)
        return compute_scurve(self.tasks, TimeRange.for_project(project, self.tasks), mode, as_of)
