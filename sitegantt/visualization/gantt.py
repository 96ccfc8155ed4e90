import logging

import matplotlib.pyplot as plt
from matplotlib.patches import Patch

from sitegantt.config import GanttConfig
from sitegantt.domain.drag import BarType
from sitegantt.services.coordinates import (
    HIDDEN,
    TimeRange,
    bar_geometry,
    marker_x,
    task_bar_geometry,
)
from sitegantt.services.hierarchy import flatten_rows
from sitegantt.services.rollup import get_category_summary, group_display_range, group_summaries
from sitegantt.utils.dates import format_date, today

logger = logging.getLogger(__name__)

# One "pixel" per day so bar positions read as days from the window start
DAY_SCALE = GanttConfig(cell_width=1.0)

ROW_COLORS = {
    "category": "#e5e7eb",
    "subcategory": "#f3f4f6",
    "subsubcategory": "#f9fafb",
}


def create_gantt_chart(tasks, time_range=None, filename=None, show=True, status_date=None,
                       collapsed_categories=(), collapsed_tasks=(), drag_state=None, title=None):
    """
    Create a Gantt chart of a construction schedule.

    Category headers carry their rollup bar, groups carry the rollup of their
    leaves, and leaves show their planned bar with the actual bar beneath.

    Args:
        tasks: List of tasks
        time_range: Optional TimeRange; defaults to the task span
        filename: Optional filename to save the chart
        show: Whether to display the chart (default: True)
        status_date: Date of the vertical status line (default: today)
        collapsed_categories: Category names whose rows are hidden
        collapsed_tasks: Group ids whose children are hidden
        drag_state: Optional in-progress gesture to preview
        title: Optional chart title

    Returns:
        The matplotlib figure, or None when there is nothing to draw
    """
    if not tasks:
        logger.warning("No tasks available to visualize")
        return None

    time_range = time_range or TimeRange.for_project(None, tasks)
    status_date = status_date or today()
    rows = flatten_rows(
        tasks, collapsed_categories=collapsed_categories, collapsed_tasks=collapsed_tasks
    )
    summaries = group_summaries(tasks)

    fig, ax = plt.subplots(figsize=(14, max(4, 0.4 * len(rows) + 2)))

    labels = []
    for i, row in enumerate(rows):
        if row.kind != "task":
            ax.axhspan(i - 0.5, i + 0.5, color=ROW_COLORS[row.kind], zorder=0)
            summary = get_category_summary(row.bucket, tasks)
            date_range = summary["date_range"]
            if date_range:
                geometry = bar_geometry(date_range["start"], date_range["end"], time_range, DAY_SCALE)
                if geometry.visible:
                    ax.barh(i, geometry.width, left=geometry.left, height=0.3,
                            color="dimgray", alpha=0.8)
            labels.append("  " * row.level + row.bucket.name)
            continue

        task = row.task
        labels.append("  " * row.level + task.name)

        if task.id in summaries:
            summary = summaries[task.id]
            start, end = group_display_range(task, summary)
            geometry = HIDDEN
            if start and end:
                geometry = bar_geometry(start, max(start, end), time_range, DAY_SCALE)
            if geometry.visible:
                ax.barh(i, geometry.width, left=geometry.left, height=0.35,
                        color="black", alpha=0.7)
                ax.text(geometry.left + geometry.width / 2, i, f"{summary.progress}%",
                        ha="center", va="center", color="white", fontsize=7)
            continue

        plan = task_bar_geometry(task, BarType.PLAN, time_range, DAY_SCALE, drag_state)
        if plan.visible:
            ax.barh(i - 0.12, plan.width, left=plan.left, height=0.3,
                    color=task.color or "tab:blue", alpha=0.6)

        actual = task_bar_geometry(task, BarType.ACTUAL, time_range, DAY_SCALE, drag_state)
        if actual.visible:
            ax.barh(i + 0.15, actual.width, left=actual.left, height=0.2,
                    color="green", alpha=0.8)

        if plan.visible and task.progress:
            ax.text(plan.left + plan.width, i, f" {task.progress:.0f}%",
                    ha="left", va="center", fontsize=7)

    ax.set_yticks(range(len(rows)))
    ax.set_yticklabels(labels, fontsize=8)
    ax.set_ylim(len(rows) - 0.5, -0.5)
    ax.set_xlim(0, time_range.total_days)

    ax.set_title(title or f"Construction Schedule (Status as of {format_date(status_date)})")
    ax.set_xlabel(f"Days from {format_date(time_range.start)}")
    ax.grid(axis="x", alpha=0.3)

    status_x = marker_x(status_date, time_range, DAY_SCALE)
    if status_x is not None:
        ax.axvline(x=status_x, color="red", linestyle="--", linewidth=1.5)

    legend_elements = [
        Patch(facecolor="tab:blue", alpha=0.6, label="Planned"),
        Patch(facecolor="green", alpha=0.8, label="Actual"),
        Patch(facecolor="black", alpha=0.7, label="Group Rollup"),
        Patch(facecolor="dimgray", alpha=0.8, label="Category Rollup"),
    ]
    ax.legend(handles=legend_elements, loc="upper right")

    plt.tight_layout()

    if filename:
        plt.savefig(filename, dpi=150, bbox_inches="tight")

    if show:
        plt.show()

    return fig
