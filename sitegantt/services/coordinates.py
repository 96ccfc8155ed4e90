from collections import namedtuple
from datetime import date
from typing import Iterable, Optional

from sitegantt.config import GanttConfig
from sitegantt.domain.drag import BarType, DragOperation
from sitegantt.utils.dates import add_days, days_between, parse_date, today


BarGeometry = namedtuple("BarGeometry", ["left", "width", "visible"])

HIDDEN = BarGeometry(0.0, 0.0, False)


class TimeRange:
    """Inclusive window of calendar days shown on the timeline."""

    def __init__(self, start, end):
        self.start = parse_date(start)
        self.end = parse_date(end)
        if self.start is None or self.end is None:
            raise ValueError("Time range needs a valid start and end date")
        if self.end < self.start:
            raise ValueError(
                f"Time range end {self.end} is before its start {self.start}"
            )

    @property
    def total_days(self) -> int:
        return days_between(self.end, self.start) + 1

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end

    @classmethod
    def for_project(cls, project=None, tasks: Iterable = ()) -> "TimeRange":
        """
        Default window for a project.

        Uses the project's own start/end dates when both are set, otherwise
        the span of the tasks' planned dates, otherwise a single day (today).
        """
        if project is not None and project.start_date and project.end_date:
            if project.end_date >= project.start_date:
                return cls(project.start_date, project.end_date)

        starts = [t.plan_start_date for t in tasks if t.plan_start_date]
        ends = [t.plan_end_date for t in tasks if t.plan_end_date]
        if starts and ends:
            return cls(min(starts), max(max(ends), min(starts)))

        now = today()
        return cls(now, now)

    def __repr__(self) -> str:
        return f"TimeRange({self.start}..{self.end})"


def get_coordinate_x(value: date, chart_start: date, config: GanttConfig) -> float:
    """Horizontal pixel offset of a date from the chart start."""
    offset_days = days_between(value, chart_start)
    return offset_days * config.pixels_per_day


def chart_width(time_range: TimeRange, config: GanttConfig) -> float:
    return time_range.total_days * config.pixels_per_day


def bar_geometry(start: date, end: date, time_range: TimeRange, config: GanttConfig) -> BarGeometry:
    """
    Pixel extent of an inclusive date range, clamped to the chart.

    Bars entirely outside ``[0, chart width]`` are hidden. Visible bars are
    at least one pixel wide.
    """
    duration_days = days_between(end, start) + 1
    left = get_coordinate_x(start, time_range.start, config)
    width = duration_days * config.pixels_per_day
    total_width = chart_width(time_range, config)

    if (left < 0 and left + width < 0) or left > total_width:
        return HIDDEN

    clamped_left = max(0.0, left)
    clamped_end = min(total_width, left + width)
    clamped_width = clamped_end - clamped_left
    if clamped_width <= 0:
        return HIDDEN

    return BarGeometry(clamped_left, max(1.0, clamped_width), True)


def marker_x(value: date, time_range: TimeRange, config: GanttConfig) -> Optional[float]:
    """Pixel position of a single-date marker, or None when off the chart."""
    x = get_coordinate_x(value, time_range.start, config)
    if x < 0 or x > chart_width(time_range, config):
        return None
    return x


def task_bar_geometry(task, bar_type, time_range: TimeRange, config: GanttConfig, drag_state=None) -> BarGeometry:
    """
    Geometry of a task's plan or actual bar, including live drag preview.

    While a gesture is in progress the dragged bar is drawn at the gesture's
    current range, and plan bars of subtree descendants of a moved task are
    drawn translated by the same number of days.
    """
    bar_type = BarType(bar_type) if not isinstance(bar_type, BarType) else bar_type

    if drag_state is not None and drag_state.bar_type == bar_type:
        if drag_state.task_id == task.id:
            return bar_geometry(drag_state.current_start, drag_state.current_end, time_range, config)

        if (
            bar_type == BarType.PLAN
            and drag_state.op_type == DragOperation.MOVE
            and task.id in drag_state.affected_descendant_ids
            and task.has_plan_range()
        ):
            start, end = task.shifted_plan(drag_state.start_delta)
            return bar_geometry(start, end, time_range, config)

    if bar_type == BarType.PLAN:
        if not task.has_plan_range():
            return HIDDEN
        return bar_geometry(task.plan_start_date, task.plan_end_date, time_range, config)

    actual = task.actual_range()
    if actual is None:
        return HIDDEN
    return bar_geometry(actual[0], actual[1], time_range, config)


def summary_bar_geometry(summary, time_range: TimeRange, config: GanttConfig) -> BarGeometry:
    """Geometry of a group or category rollup bar; hidden when it has no dates."""
    start = getattr(summary, "min_start_date", None)
    end = getattr(summary, "max_end_date", None)
    if start is None or end is None:
        return HIDDEN
    return bar_geometry(start, max(start, end), time_range, config)


def today_marker_x(time_range: TimeRange, config: GanttConfig) -> Optional[float]:
    return marker_x(today(), time_range, config)


def scroll_offset_for(value: date, time_range: TimeRange, config: GanttConfig, viewport_width: float) -> float:
    """Horizontal scroll offset that centres ``value`` in a viewport."""
    x = get_coordinate_x(value, time_range.start, config)
    return max(0.0, x - viewport_width / 2)


def visible_days(time_range: TimeRange):
    """Every day in the window, in order."""
    return [add_days(time_range.start, i) for i in range(time_range.total_days)]
