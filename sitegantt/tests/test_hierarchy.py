import unittest

from sitegantt.domain.task import Task
from sitegantt.services.hierarchy import (
    UNCATEGORIZED,
    GroupNode,
    LeafNode,
    build_forest,
    children_by_parent,
    get_children,
    get_descendant_ids,
    get_leaf_descendants,
    get_leaf_tasks,
    group_by_category,
    flatten_rows,
    is_descendant,
    is_leaf,
    row_index,
)


def sample_tasks():
    return [
        Task("G", type="group", category="Civil", order=1),
        Task("A", category="Civil", order=2, parent_task_id="G"),
        Task("B", category="Civil", order=1, parent_task_id="G"),
        Task("C", category="Civil", subcategory="Earth", order=1),
        Task("D", order=1),
        Task("O", category="Civil", order=5, parent_task_id="missing"),
    ]


class HierarchyTestCase(unittest.TestCase):
    """Test cases for the parent/child forest."""

    def setUp(self):
        self.tasks = sample_tasks()

    def test_children_sorted_by_order(self):
        """Test children sorted by order."""
        self.assertEqual([t.id for t in get_children("G", self.tasks)], ["B", "A"])
        self.assertEqual(get_children("A", self.tasks), [])

    def test_leaf_rule(self):
        """Test leaf rule."""
        index = children_by_parent(self.tasks)
        by_id = {t.id: t for t in self.tasks}
        self.assertFalse(is_leaf(by_id["G"], index))
        self.assertTrue(is_leaf(by_id["A"], index))

        # a plain task with children is a group, an empty group is not a leaf
        tasks = [Task("P"), Task("K", parent_task_id="P"), Task("E", type="group")]
        self.assertEqual([t.id for t in get_leaf_tasks(tasks)], ["K"])

    def test_descendants(self):
        """Test descendant lookups."""
        tasks = self.tasks + [Task("A1", parent_task_id="A")]
        self.assertEqual(get_descendant_ids("G", tasks), {"A", "B", "A1"})
        self.assertEqual({t.id for t in get_leaf_descendants("G", tasks)}, {"B", "A1"})
        self.assertTrue(is_descendant("A1", "G", tasks))
        self.assertFalse(is_descendant("G", "A1", tasks))

    def test_forest(self):
        """Test the parent/child forest."""
        forest = build_forest(self.tasks)
        self.assertEqual([n.id for n in forest], ["G", "C", "D", "O"])

        group = forest[0]
        self.assertIsInstance(group, GroupNode)
        self.assertTrue(group.is_group)
        self.assertEqual([c.id for c in group.children], ["B", "A"])
        self.assertEqual([c.depth for c in group.children], [1, 1])
        self.assertEqual([leaf.id for leaf in group.iter_leaves()], ["B", "A"])

        self.assertIsInstance(forest[3], LeafNode)
        self.assertEqual(list(forest[3].iter_leaves()), [forest[3]])

    def test_forest_survives_parent_cycle(self):
        """Test forest survives parent cycle."""
        tasks = [Task("R"), Task("X", parent_task_id="Y"), Task("Y", parent_task_id="X")]
        forest = build_forest(tasks)
        self.assertEqual([n.id for n in forest], ["R"])


class CategoryTestCase(unittest.TestCase):
    """Test cases for category buckets and row flattening."""

    def setUp(self):
        self.tasks = sample_tasks()

    def test_group_by_category_roots_only(self):
        """Test group by category roots only."""
        structure = group_by_category(self.tasks)
        self.assertEqual(list(structure.keys()), ["Civil", UNCATEGORIZED])

        civil = structure["Civil"]
        self.assertEqual([t.id for t in civil.tasks], ["G", "O"])
        self.assertEqual(list(civil.children.keys()), ["Earth"])
        self.assertEqual(civil.children["Earth"].key, "Civil::Earth")
        self.assertEqual(civil.children["Earth"].level, 1)
        self.assertEqual([t.id for t in civil.root_tasks()], ["G", "O", "C"])
        self.assertEqual([t.id for t in civil.all_tasks(self.tasks)], ["G", "A", "B", "O", "C"])

    def test_flatten_rows(self):
        """Test flatten rows."""
        rows = flatten_rows(self.tasks)
        self.assertEqual(
            [r.id for r in rows],
            ["Civil", "Civil::Earth", "C", "G", "B", "A", "O", UNCATEGORIZED, "D"],
        )
        self.assertEqual([r.level for r in rows[:6]], [0, 1, 1, 0, 1, 1])
        self.assertEqual(rows[1].kind, "subcategory")

    def test_flatten_rows_collapsed(self):
        """Test flatten rows collapsed."""
        rows = flatten_rows(self.tasks, collapsed_tasks={"G"})
        self.assertNotIn("A", [r.id for r in rows])

        rows = flatten_rows(self.tasks, collapsed_categories={"Civil"})
        self.assertEqual([r.id for r in rows], ["Civil", UNCATEGORIZED, "D"])

        rows = flatten_rows(self.tasks, collapsed_subcategories={"Civil::Earth"})
        self.assertNotIn("C", [r.id for r in rows])

    def test_flatten_rows_nested_groups(self):
        """Test that nested groups indent by depth and collapse their own subtree."""
        tasks = self.tasks + [Task("A1", parent_task_id="A", order=1)]
        rows = flatten_rows(tasks)
        levels = {r.id: r.level for r in rows if r.kind == "task"}
        self.assertEqual((levels["G"], levels["A"], levels["A1"]), (0, 1, 2))

        rows = flatten_rows(tasks, collapsed_tasks={"A"})
        self.assertEqual([r.id for r in rows if r.kind == "task"], ["C", "G", "B", "A", "O", "D"])

    def test_flatten_rows_category_order(self):
        """Test flatten rows category order."""
        rows = flatten_rows(self.tasks, category_order=[UNCATEGORIZED])
        self.assertEqual(rows[0].id, UNCATEGORIZED)

    def test_subsubcategory_rows(self):
        """Test subsubcategory rows."""
        tasks = [
            Task("S", category="MEP", subcategory="Electrical", subsubcategory="Lighting"),
            Task("T", category="MEP", subcategory="Electrical"),
        ]
        rows = flatten_rows(tasks)
        self.assertEqual(
            [(r.kind, r.id) for r in rows],
            [
                ("category", "MEP"),
                ("subcategory", "MEP::Electrical"),
                ("subsubcategory", "MEP::Electrical::Lighting"),
                ("task", "S"),
                ("task", "T"),
            ],
        )

    def test_row_index(self):
        """Test row index."""
        rows = flatten_rows(self.tasks)
        index = row_index(rows)
        self.assertEqual(index["C"], 2)
        self.assertNotIn("Civil", index)


if __name__ == "__main__":
    unittest.main()
