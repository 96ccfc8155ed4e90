import unittest
from datetime import date

from sitegantt.domain.project import Expense, Project, ProjectError
from sitegantt.domain.task import Task, TaskError, TaskStatus, TaskType
from sitegantt.utils.exceptions import SiteGanttError


class TaskTestCase(unittest.TestCase):
    """Test cases for the Task entity."""

    def setUp(self):
        self.task = Task(
            id="T1",
            project_id="P1",
            name="Excavation",
            category="Civil",
            order=1,
            plan_start_date="2025-04-01",
            plan_end_date="2025-04-10",
            cost=5000,
            predecessors=["T0"],
        )

    def test_initialization_validation(self):
        """Test initialization validation."""
        with self.assertRaises(TaskError):
            Task(id=None)
        with self.assertRaises(TaskError):
            Task(id="  ")
        with self.assertRaises(TaskError):
            Task(id="X", progress=101)
        with self.assertRaises(TaskError):
            Task(id="X", progress=-1)
        with self.assertRaises(TaskError):
            Task(id="X", cost=-5)
        with self.assertRaises(TaskError):
            Task(id="X", type="milestone")
        with self.assertRaises(TaskError):
            Task(id="X", status="done")
        with self.assertRaises(TaskError):
            Task(id="X", predecessors="T1")

    def test_defaults(self):
        """Test default values."""
        task = Task(id="X")
        self.assertEqual(task.type, TaskType.TASK.value)
        self.assertEqual(task.status, TaskStatus.NOT_STARTED.value)
        self.assertEqual(task.predecessors, [])
        self.assertIsNone(task.parent_task_id)
        self.assertFalse(task.is_group)
        self.assertEqual(task.plan_duration, 1)

    def test_errors_share_base_class(self):
        """Test errors share base class."""
        with self.assertRaises(SiteGanttError) as ctx:
            Task(id="X", progress=200)
        self.assertEqual(ctx.exception.to_dict()["error_type"], "TaskError")

    def test_dates_are_parsed(self):
        """Test dates are parsed."""
        self.assertEqual(self.task.plan_start_date, date(2025, 4, 1))
        self.assertEqual(self.task.plan_end_date, date(2025, 4, 10))
        self.assertEqual(self.task.plan_duration, 10)
        self.assertTrue(self.task.has_plan_range())

    def test_unparseable_date_is_absent_and_logged(self):
        """Test unparseable date is absent and logged."""
        with self.assertLogs("sitegantt.domain.task", level="WARNING"):
            self.task.plan_start_date = "tomorrow"
        self.assertIsNone(self.task.plan_start_date)
        self.assertFalse(self.task.has_plan_range())

    def test_empty_parent_becomes_root(self):
        """Test empty parent becomes root."""
        self.task.parent_task_id = ""
        self.assertIsNone(self.task.parent_task_id)

    def test_shift_round_trip(self):
        """Test shift round trip."""
        start, end = self.task.shifted_plan(7)
        self.assertEqual(start, date(2025, 4, 8))
        self.assertEqual(end, date(2025, 4, 17))

        shifted = self.task.copy()
        shifted.plan_start_date, shifted.plan_end_date = start, end
        back = shifted.shifted_plan(-7)
        self.assertEqual(back, (self.task.plan_start_date, self.task.plan_end_date))

    def test_shift_keeps_missing_dates_missing(self):
        """Test shift keeps missing dates missing."""
        task = Task(id="X", plan_start_date="2025-01-01")
        self.assertEqual(task.shifted_plan(3), (date(2025, 1, 4), None))

    def test_effective_actual_end(self):
        """Test effective actual end."""
        self.assertIsNone(self.task.effective_actual_end())

        self.task.actual_start_date = "2025-04-02"
        self.assertEqual(self.task.effective_actual_end(), date(2025, 4, 2))

        self.task.progress = 50
        self.assertEqual(self.task.effective_actual_end(), date(2025, 4, 6))

        self.task.actual_end_date = "2025-04-09"
        self.assertEqual(self.task.effective_actual_end(), date(2025, 4, 9))

    def test_actual_range(self):
        """Test the actual bar range."""
        self.assertIsNone(self.task.actual_range())

        # progress without a recorded start is drawn from the planned start
        self.task.progress = 20
        self.assertEqual(self.task.actual_range(), (date(2025, 4, 1), date(2025, 4, 2)))

        self.task.actual_start_date = "2025-04-03"
        self.task.actual_end_date = "2025-04-05"
        self.assertEqual(self.task.actual_range(), (date(2025, 4, 3), date(2025, 4, 5)))

    def test_update(self):
        """Test partial field updates."""
        self.task.update({"progress": 40, "planEndDate": "2025-04-12", "status": "in-progress"})
        self.assertEqual(self.task.progress, 40)
        self.assertEqual(self.task.plan_end_date, date(2025, 4, 12))
        self.assertEqual(self.task.status, "in-progress")

        with self.assertRaises(TaskError):
            self.task.update({"resources": ["crane"]})
        with self.assertRaises(TaskError):
            self.task.update({"progress": 150})

    def test_dict_round_trip_and_aliases(self):
        """Test dict round trip and aliases."""
        data = self.task.to_dict()
        self.assertEqual(data["plan_start_date"], "2025-04-01")
        self.assertIsNone(data["actual_start_date"])
        self.assertEqual(Task.from_dict(data), self.task)

        stored = {
            "id": "T9",
            "projectId": "P1",
            "parentTaskId": "G1",
            "planStartDate": "2025-05-01",
            "planEndDate": "2025-05-03",
            "extra": "ignored",
        }
        task = Task.from_dict(stored)
        self.assertEqual(task.parent_task_id, "G1")
        self.assertEqual(task.project_id, "P1")
        self.assertEqual(task.plan_duration, 3)

        with self.assertRaises(TaskError):
            Task.from_dict({"name": "no id"})

    def test_copy_is_independent(self):
        """Test copy is independent."""
        clone = self.task.copy()
        clone.predecessors.append("T5")
        clone.progress = 90
        self.assertEqual(self.task.predecessors, ["T0"])
        self.assertEqual(self.task.progress, 0)


class ProjectTestCase(unittest.TestCase):
    """Test cases for Project and Expense."""

    def test_project_validation_and_activity(self):
        """Test project validation and activity."""
        with self.assertRaises(ProjectError):
            Project(id="", name="Nameless")
        with self.assertRaises(ProjectError):
            Project(id="P1", name="")
        with self.assertRaises(ProjectError):
            Project(id="P1", name="Bad", status="abandoned")

        self.assertTrue(Project("P1", "House", status="on-hold").is_active)
        self.assertFalse(Project("P2", "Shed", status="completed").is_active)
        self.assertFalse(Project("P3", "Barn", status="cancelled").is_active)

    def test_project_round_trip(self):
        """Test project round trip."""
        project = Project.from_dict(
            {"id": "P1", "name": "House", "startDate": "2025-01-01", "endDate": "2025-06-30", "code": "H1"}
        )
        self.assertEqual(project.start_date, date(2025, 1, 1))
        self.assertEqual(project.to_dict()["end_date"], "2025-06-30")
        self.assertEqual(project.status, "planning")

    def test_expense(self):
        """Test expense validation."""
        expense = Expense.from_dict(
            {"id": "E1", "projectId": "P1", "date": "2025-02-01", "amount": 250.5, "costCode": "CIV"}
        )
        self.assertEqual(expense.date, date(2025, 2, 1))
        self.assertEqual(expense.cost_code, "CIV")
        self.assertEqual(expense.to_dict()["amount"], 250.5)

        with self.assertRaises(ProjectError):
            Expense("E2", "P1", "2025-02-01", "lots")


if __name__ == "__main__":
    unittest.main()
