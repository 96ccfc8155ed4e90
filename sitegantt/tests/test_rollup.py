import unittest
from datetime import date

from sitegantt.domain.task import Task
from sitegantt.services.hierarchy import group_by_category
from sitegantt.services.rollup import (
    GroupSummary,
    get_category_summary,
    get_group_summary,
    group_display_range,
    group_summaries,
    summarize_leaves,
)


class RollupTestCase(unittest.TestCase):
    """Test cases for group and category rollups."""

    def test_cost_weighted_progress(self):
        """Test cost weighted progress."""
        tasks = [
            Task("G", type="group"),
            Task("L1", parent_task_id="G", cost=100, progress=50),
            Task("L2", parent_task_id="G", cost=300, progress=90),
        ]
        summary = get_group_summary(tasks[0], tasks)
        self.assertEqual(summary.progress, 80)
        self.assertEqual(summary.total_cost, 400)
        self.assertEqual(summary.count, 2)
        self.assertAlmostEqual(summary.total_weight, 100.0)

    def test_zero_cost_leaves_count_once(self):
        """Test zero cost leaves count once."""
        tasks = [
            Task("G", type="group"),
            Task("L1", parent_task_id="G", progress=20),
            Task("L2", parent_task_id="G", progress=60),
        ]
        self.assertEqual(get_group_summary(tasks[0], tasks).progress, 40)

    def test_empty_group(self):
        """Test empty group."""
        group = Task("G", type="group", plan_start_date="2025-01-01", plan_end_date="2025-01-31")
        summary = get_group_summary(group, [group])
        self.assertTrue(summary.is_empty)
        data = summary.to_dict()
        self.assertEqual(data["count"], 0)
        self.assertEqual(data["min_start_date"], "")
        self.assertEqual(data["max_end_date"], "")
        self.assertEqual(data["progress"], 0)
        self.assertEqual(data["total_cost"], 0)
        self.assertIsNone(data["min_actual_date"])

        # the chart still draws the group's own stored range
        self.assertEqual(group_display_range(group, summary), (date(2025, 1, 1), date(2025, 1, 31)))

    def test_nested_groups_and_dates(self):
        """Test nested groups and dates."""
        tasks = [
            Task("G", type="group"),
            Task("H", type="group", parent_task_id="G"),
            Task("L1", parent_task_id="G", cost=10, plan_start_date="2025-01-05", plan_end_date="2025-01-09",
                 actual_start_date="2025-01-06", actual_end_date="2025-01-08", progress=100),
            Task("L2", parent_task_id="H", cost=30, plan_start_date="2025-01-02", plan_end_date="2025-01-20",
                 actual_start_date="2025-01-03", progress=0),
        ]
        summary = get_group_summary(tasks[0], tasks)
        self.assertEqual(summary.count, 2)
        self.assertEqual(summary.min_start_date, date(2025, 1, 2))
        self.assertEqual(summary.max_end_date, date(2025, 1, 20))
        self.assertEqual(summary.min_actual_date, date(2025, 1, 3))
        self.assertEqual(summary.max_actual_date, date(2025, 1, 8))
        self.assertEqual(summary.progress, 25)

        data = summary.to_dict()
        self.assertEqual(data["min_start_date"], "02/01/2025")
        self.assertEqual(data["max_actual_date"], "08/01/2025")
        self.assertEqual(group_display_range(tasks[0], summary), (date(2025, 1, 2), date(2025, 1, 20)))

        summaries = group_summaries(tasks)
        self.assertEqual(set(summaries), {"G", "H"})
        self.assertEqual(summaries["H"].count, 1)

    def test_unparseable_dates_are_ignored(self):
        """Test that unparseable leaf dates are left out of the rollup range."""
        with self.assertLogs("sitegantt.domain.task", level="WARNING"):
            tasks = [
                Task("G", type="group"),
                Task("L1", parent_task_id="G", cost=100, progress=50, plan_start_date="31/02/2025",
                     plan_end_date="2025-01-10", actual_start_date="junk"),
                Task("L2", parent_task_id="G", cost=100, progress=100, plan_start_date="2025-01-05",
                     plan_end_date="2025-01-08", actual_start_date="2025-01-06", actual_end_date="2025-01-07"),
            ]
        summary = get_group_summary(tasks[0], tasks)
        self.assertEqual(summary.count, 2)
        self.assertEqual(summary.min_start_date, date(2025, 1, 5))
        self.assertEqual(summary.max_end_date, date(2025, 1, 10))
        self.assertEqual(summary.min_actual_date, date(2025, 1, 6))
        self.assertEqual(summary.max_actual_date, date(2025, 1, 7))
        self.assertEqual(summary.progress, 75)

    def test_summarize_leaves_empty(self):
        """Test summarize leaves empty."""
        self.assertTrue(summarize_leaves([]).is_empty)
        self.assertEqual(GroupSummary().progress, 0)

    def test_category_summary(self):
        """Test category summary."""
        tasks = [
            Task("G", type="group", category="Civil"),
            Task("L1", parent_task_id="G", category="Civil", cost=100, progress=50,
                 plan_start_date="2025-01-01", plan_end_date="2025-01-10"),
            Task("L2", category="Civil", cost=300, progress=100,
                 plan_start_date="2025-01-05", plan_end_date="2025-01-20"),
            Task("L3", category="MEP", cost=600),
        ]
        bucket = group_by_category(tasks)["Civil"]
        summary = get_category_summary(bucket, tasks)
        self.assertEqual(summary["count"], 2)
        self.assertEqual(summary["total_cost"], 400)
        self.assertAlmostEqual(summary["total_weight"], 40.0)
        self.assertEqual(summary["avg_progress"], 75)
        self.assertEqual(
            summary["date_range"], {"start": date(2025, 1, 1), "end": date(2025, 1, 20), "days": 20}
        )

        empty = get_category_summary(group_by_category(tasks)["MEP"], tasks)
        self.assertIsNone(empty["date_range"])


if __name__ == "__main__":
    unittest.main()
