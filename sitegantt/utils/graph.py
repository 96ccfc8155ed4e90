import logging
from typing import Dict, Iterable, List, Set

import networkx as nx

logger = logging.getLogger(__name__)


def index_tasks(tasks: Iterable) -> Dict:
    """Map task id to task, keeping the first occurrence of a duplicated id."""
    indexed = {}
    for task in tasks:
        indexed.setdefault(task.id, task)
    return indexed


def build_dependency_graph(tasks):
    """
    Build a directed graph of finish-to-start dependencies.

    Edges run predecessor -> successor. Predecessor ids that do not name a
    task in ``tasks`` are skipped. Cycles are allowed in the graph; use
    ``find_dependency_cycles`` to report them.
    """
    if not isinstance(tasks, dict):
        tasks = index_tasks(tasks)

    G = nx.DiGraph()

    for task_id, task in tasks.items():
        G.add_node(task_id, task=task)

    for task_id, task in tasks.items():
        for dep_id in task.predecessors:
            if dep_id in tasks:
                G.add_edge(dep_id, task_id)
            else:
                logger.warning("Task %s: predecessor %s does not exist", task_id, dep_id)

    return G


def build_hierarchy_graph(tasks):
    """Build a directed parent -> child graph from ``parent_task_id`` links."""
    if not isinstance(tasks, dict):
        tasks = index_tasks(tasks)

    G = nx.DiGraph()
    for task_id, task in tasks.items():
        G.add_node(task_id, task=task)
    for task_id, task in tasks.items():
        if task.parent_task_id and task.parent_task_id in tasks:
            G.add_edge(task.parent_task_id, task_id)
    return G


def find_dependency_cycles(graph) -> List[List[str]]:
    """Return every elementary dependency cycle as a list of task ids."""
    return [list(cycle) for cycle in nx.simple_cycles(graph)]


def closes_cycle(graph, source, target) -> bool:
    """True if an edge source -> target lies on a cycle (target already reaches source)."""
    if source not in graph or target not in graph:
        return False
    return nx.has_path(graph, target, source)


def would_create_cycle(graph, predecessor_id, successor_id) -> bool:
    """True if adding predecessor -> successor would make the graph cyclic."""
    if predecessor_id == successor_id:
        return True
    return closes_cycle(graph, predecessor_id, successor_id)


def descendant_ids(graph, task_id) -> Set[str]:
    """All tasks reachable from ``task_id`` in a hierarchy or dependency graph."""
    if task_id not in graph:
        return set()
    return set(nx.descendants(graph, task_id))
