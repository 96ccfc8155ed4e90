"""
Hierarchy Builder
=================

Two independent views of one flat task list:

- the parent/child forest built from ``parent_task_id`` (nesting, indentation,
  collapse), exposed as a tagged union of ``GroupNode`` and ``LeafNode``;
- the category path tree ``category -> subcategory -> subsubcategory``
  applied to root tasks only; a root's subtree travels with it.

A task is a leaf when no task names it as parent and it is not typed
``group``. A group is any task typed ``group`` or any task with children.
"""

import logging
from collections import OrderedDict, namedtuple
from typing import Dict, Iterable, List, Optional, Sequence, Set

from sitegantt.utils.graph import build_hierarchy_graph, descendant_ids, index_tasks

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
PATH_SEPARATOR = "::"

Row = namedtuple("Row", ["kind", "id", "level", "task", "bucket"])


def _sort_key(task):
    return task.order or 0


def children_by_parent(tasks: Iterable) -> Dict[Optional[str], List]:
    """Group tasks by ``parent_task_id`` with each sibling list sorted by order."""
    index: Dict[Optional[str], List] = {}
    for task in tasks:
        index.setdefault(task.parent_task_id, []).append(task)
    for siblings in index.values():
        siblings.sort(key=_sort_key)
    return index


def get_children(task_id: str, tasks: Iterable) -> List:
    return children_by_parent(tasks).get(task_id, [])


def is_leaf(task, children_index: Dict[Optional[str], List]) -> bool:
    return not task.is_group and not children_index.get(task.id)


def get_leaf_tasks(tasks: Sequence) -> List:
    """Tasks that carry their own cost, progress and dates."""
    children_index = children_by_parent(tasks)
    return [t for t in tasks if is_leaf(t, children_index)]


def get_descendant_ids(task_id: str, tasks: Iterable) -> Set[str]:
    """Every task below ``task_id`` in the parent/child tree."""
    return descendant_ids(build_hierarchy_graph(tasks), task_id)


def get_leaf_descendants(task_id: str, tasks: Sequence) -> List:
    """
    Leaf tasks anywhere below ``task_id``.

    Nested groups are expanded; the groups themselves are not returned.
    """
    indexed = index_tasks(tasks)
    children_index = children_by_parent(indexed.values())
    ids = get_descendant_ids(task_id, indexed)
    return [
        indexed[i] for i in ids if i in indexed and is_leaf(indexed[i], children_index)
    ]


def is_descendant(candidate_id: str, ancestor_id: str, tasks: Iterable) -> bool:
    return candidate_id in get_descendant_ids(ancestor_id, tasks)


class TaskNode:
    """A task placed in the parent/child forest."""

    is_group = False

    def __init__(self, task, depth: int = 0):
        self.task = task
        self.depth = depth

    @property
    def id(self) -> str:
        return self.task.id

    def iter_leaves(self):
        yield self

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id}, depth={self.depth})"


class LeafNode(TaskNode):
    """A work item: owns its cost, progress and dates."""

    pass


class GroupNode(TaskNode):
    """A container whose display values come from its leaves."""

    is_group = True

    def __init__(self, task, depth: int = 0, children: Optional[List[TaskNode]] = None):
        super().__init__(task, depth)
        self.children = children or []

    def iter_leaves(self):
        for child in self.children:
            yield from child.iter_leaves()


def build_forest(tasks: Sequence) -> List[TaskNode]:
    """
    Build the parent/child forest.

    Roots are tasks without a parent, plus tasks whose parent id names no
    task in the list. Siblings are ordered by ``order``. A task reachable
    twice through corrupt parent links is placed once.
    """
    indexed = index_tasks(tasks)
    children_index = children_by_parent(indexed.values())
    placed: Set[str] = set()

    def make_node(task, depth):
        placed.add(task.id)
        kids = [c for c in children_index.get(task.id, []) if c.id not in placed]
        if task.is_group or kids:
            node = GroupNode(task, depth)
            node.children = [make_node(c, depth + 1) for c in kids if c.id not in placed]
            return node
        return LeafNode(task, depth)

    roots = []
    for task in sorted(indexed.values(), key=_sort_key):
        parent = task.parent_task_id
        if parent is None or parent not in indexed:
            if parent is not None:
                logger.debug("Task %s: parent %s not found, treating as root", task.id, parent)
            roots.append(task)

    return [make_node(t, 0) for t in roots if t.id not in placed]


class CategoryBucket:
    """One node of the category path tree."""

    def __init__(self, name: str, path: Sequence[str] = ()):
        self.name = name
        self.path = tuple(path) or (name,)
        self.tasks: List = []
        self.children: "OrderedDict[str, CategoryBucket]" = OrderedDict()

    @property
    def key(self) -> str:
        return PATH_SEPARATOR.join(self.path)

    @property
    def level(self) -> int:
        return len(self.path) - 1

    def child(self, name: str) -> "CategoryBucket":
        if name not in self.children:
            self.children[name] = CategoryBucket(name, self.path + (name,))
        return self.children[name]

    def root_tasks(self) -> List:
        """Root tasks in this bucket and all sub-buckets."""
        result = list(self.tasks)
        for child in self.children.values():
            result.extend(child.root_tasks())
        return result

    def all_tasks(self, tasks: Sequence) -> List:
        """Root tasks of this bucket together with their whole subtrees."""
        hierarchy = build_hierarchy_graph(tasks)
        indexed = index_tasks(tasks)
        result = []
        seen = set()
        for root in self.root_tasks():
            for task_id in [root.id] + sorted(descendant_ids(hierarchy, root.id)):
                if task_id not in seen and task_id in indexed:
                    seen.add(task_id)
                    result.append(indexed[task_id])
        return result

    def __repr__(self) -> str:
        return f"CategoryBucket({self.key}, tasks={len(self.tasks)}, children={len(self.children)})"


def group_by_category(tasks: Sequence) -> "OrderedDict[str, CategoryBucket]":
    """
    Bucket root tasks by category path.

    Tasks with a parent are not bucketed; they are shown under their root.
    A missing category becomes ``Uncategorized``.
    """
    indexed = index_tasks(tasks)
    structure: "OrderedDict[str, CategoryBucket]" = OrderedDict()

    for task in indexed.values():
        if task.parent_task_id and task.parent_task_id in indexed:
            continue

        category = task.category or UNCATEGORIZED
        bucket = structure.get(category)
        if bucket is None:
            bucket = structure[category] = CategoryBucket(category)

        if task.subcategory:
            bucket = bucket.child(task.subcategory)
            if task.subsubcategory:
                bucket = bucket.child(task.subsubcategory)
        bucket.tasks.append(task)

    for bucket in structure.values():
        _sort_bucket(bucket)
    return structure


def _sort_bucket(bucket: CategoryBucket) -> None:
    bucket.tasks.sort(key=_sort_key)
    for child in bucket.children.values():
        _sort_bucket(child)


def _ordered_names(names: Iterable[str], preferred: Sequence[str]) -> List[str]:
    names = list(names)
    ranked = [n for n in preferred if n in names]
    return ranked + [n for n in names if n not in ranked]


def flatten_rows(
    tasks: Sequence,
    collapsed_categories: Iterable[str] = (),
    collapsed_subcategories: Iterable[str] = (),
    collapsed_tasks: Iterable[str] = (),
    category_order: Sequence[str] = (),
    subcategory_order: Optional[Dict[str, Sequence[str]]] = None,
) -> List[Row]:
    """
    Visible rows in display order.

    Each category header is followed by its subcategory blocks (header,
    sub-subcategory blocks, then the subcategory's own tasks) and finally the
    category's own tasks. Task rows are followed by their children unless the
    task is collapsed. Collapsed subcategory keys use ``cat::sub`` and
    ``cat::sub::subsub``.
    """
    collapsed_categories = set(collapsed_categories)
    collapsed_subcategories = set(collapsed_subcategories)
    collapsed_tasks = set(collapsed_tasks)
    subcategory_order = subcategory_order or {}

    forest = {node.id: node for node in build_forest(tasks)}
    structure = group_by_category(tasks)
    rows: List[Row] = []

    def add_nodes(nodes, level):
        for node in nodes:
            rows.append(Row("task", node.id, level, node.task, None))
            if node.is_group and node.id not in collapsed_tasks:
                add_nodes(node.children, level + 1)

    def add_tasks(task_list, level):
        add_nodes([forest[t.id] for t in task_list if t.id in forest], level)

    for cat in _ordered_names(structure.keys(), category_order):
        bucket = structure[cat]
        rows.append(Row("category", bucket.key, 0, None, bucket))
        if cat in collapsed_categories:
            continue

        for sub in _ordered_names(bucket.children.keys(), subcategory_order.get(cat, ())):
            sub_bucket = bucket.children[sub]
            rows.append(Row("subcategory", sub_bucket.key, 1, None, sub_bucket))
            if sub_bucket.key in collapsed_subcategories:
                continue

            for sub_sub_bucket in sub_bucket.children.values():
                rows.append(Row("subsubcategory", sub_sub_bucket.key, 2, None, sub_sub_bucket))
                if sub_sub_bucket.key not in collapsed_subcategories:
                    add_tasks(sub_sub_bucket.tasks, 2)

            add_tasks(sub_bucket.tasks, 1)

        add_tasks(bucket.tasks, 0)

    return rows


def row_index(rows: Sequence[Row]) -> Dict[str, int]:
    """Map visible task id to its row number (used to route dependency lines)."""
    return {row.id: i for i, row in enumerate(rows) if row.kind == "task"}
