import unittest
from datetime import date

from sitegantt.domain.task import Task
from sitegantt.services.weighting import (
    FINANCIAL,
    PHYSICAL,
    compute_budget_stats,
    kpi_stats,
    overall_progress,
    plan_days,
    planned_percent_at,
    task_scope,
    task_weight,
    total_scope,
    weight_table,
)


class WeightModelTestCase(unittest.TestCase):
    """Test cases for cost and duration weighting."""

    def setUp(self):
        self.tasks = [
            Task("G", type="group", cost=999),
            Task("A", parent_task_id="G", cost=100, progress=100,
                 plan_start_date="2025-01-01", plan_end_date="2025-01-10"),
            Task("B", parent_task_id="G", cost=300, progress=0,
                 plan_start_date="2025-01-11", plan_end_date="2025-01-20"),
        ]

    def test_plan_days(self):
        """Test plan days."""
        self.assertEqual(plan_days(self.tasks[1]), 10)
        self.assertEqual(plan_days(Task("X")), 0)
        self.assertEqual(plan_days(Task("X", plan_start_date="2025-01-05", plan_end_date="2025-01-01")), 0)

    def test_cost_weighting_over_leaves(self):
        """Test cost weighting over leaves."""
        stats = compute_budget_stats(self.tasks)
        self.assertTrue(stats.use_cost_weighting)
        self.assertEqual(stats.total_cost, 400)
        self.assertEqual(stats.total_weight, 400)
        self.assertEqual(stats.total_duration, 20)

        weights = weight_table(self.tasks, stats)
        self.assertEqual(weights["A"], 25.0)
        self.assertEqual(weights["B"], 75.0)
        self.assertEqual(weights["G"], 0)

    def test_duration_weighting_without_costs(self):
        """Test duration weighting without costs."""
        tasks = [
            Task("A", plan_start_date="2025-01-01", plan_end_date="2025-01-05"),
            Task("B", plan_start_date="2025-01-01", plan_end_date="2025-01-15"),
        ]
        stats = compute_budget_stats(tasks)
        self.assertFalse(stats.use_cost_weighting)
        self.assertEqual(stats.total_weight, 20)
        self.assertEqual(task_weight(tasks[0], stats), 25.0)

    def test_empty_total_gives_zero_weight(self):
        """Test empty total gives zero weight."""
        stats = compute_budget_stats([Task("A")])
        self.assertEqual(stats.total_weight, 0)
        self.assertEqual(task_weight(Task("A"), stats), 0.0)
        self.assertEqual(overall_progress([Task("A", progress=50)]), 0.0)

    def test_scope_modes(self):
        """Test scope modes."""
        leaf = self.tasks[1]
        self.assertEqual(task_scope(leaf, FINANCIAL), 100)
        self.assertEqual(task_scope(leaf, PHYSICAL), 10)
        self.assertEqual(total_scope(self.tasks[1:], PHYSICAL), 20)
        with self.assertRaises(ValueError):
            task_scope(leaf, "hours")

    def test_overall_progress(self):
        """Test overall progress."""
        self.assertEqual(overall_progress(self.tasks), 25.0)

    def test_planned_percent_at(self):
        """Test planned percent at."""
        leaf = self.tasks[2]
        self.assertEqual(planned_percent_at(leaf, date(2025, 1, 10)), 0.0)
        self.assertEqual(planned_percent_at(leaf, date(2025, 1, 15)), 50.0)
        self.assertEqual(planned_percent_at(leaf, date(2025, 1, 20)), 100.0)

    def test_kpi_stats(self):
        """Test KPI statistics."""
        kpi = kpi_stats(self.tasks, date(2025, 1, 15))
        self.assertEqual(kpi["progress"], 25.0)
        self.assertEqual(kpi["plan_to_date"], 62.5)
        self.assertEqual(kpi["gap"], -37.5)
        self.assertEqual(kpi["variance_percent"], kpi["gap"])
        self.assertEqual(kpi["variance_days"], -7)

    def test_kpi_stats_without_dates(self):
        """Test KPI statistics without dates."""
        kpi = kpi_stats([Task("A", cost=10)], date(2025, 1, 1))
        self.assertEqual(kpi["plan_to_date"], 0.0)
        self.assertIsNone(kpi["variance_days"])


if __name__ == "__main__":
    unittest.main()
