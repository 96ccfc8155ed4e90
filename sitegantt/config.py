"""
Engine configuration - Gantt geometry and interaction settings
"""

import os
from dataclasses import dataclass

VIEW_MODES = ("day", "week", "month")


@dataclass
class GanttConfig:
    """
    Configuration for the Gantt timeline and its drag interactions.

    Attributes:
        cell_width: Width in pixels of one timeline cell (a day, week or month)
        view_mode: Timeline granularity ("day", "week" or "month")
        month_length_days: Average month length used by the month view
        cascade_pause_ms: Feedback pause before committing dependency shifts
        group_drop_edge: Fraction of a group row at top/bottom that means above/below
        leaf_drop_edge: Fraction of a leaf row at the top that means above
    """

    cell_width: float = 40.0
    view_mode: str = "day"
    month_length_days: float = 30.44
    cascade_pause_ms: int = 600
    group_drop_edge: float = 0.25
    leaf_drop_edge: float = 0.5

    def __post_init__(self):
        """Validate configuration values."""
        if self.view_mode not in VIEW_MODES:
            raise ValueError(f"View mode must be one of {list(VIEW_MODES)}, got {self.view_mode}")
        if self.cell_width <= 0:
            raise ValueError(f"Cell width must be positive, got {self.cell_width}")
        if self.month_length_days <= 0:
            raise ValueError(f"Month length must be positive, got {self.month_length_days}")
        if self.cascade_pause_ms < 0:
            raise ValueError(f"Cascade pause cannot be negative, got {self.cascade_pause_ms}")
        if not 0 < self.group_drop_edge < 0.5:
            raise ValueError(f"Group drop edge must be between 0 and 0.5, got {self.group_drop_edge}")
        if not 0 < self.leaf_drop_edge < 1:
            raise ValueError(f"Leaf drop edge must be between 0 and 1, got {self.leaf_drop_edge}")

    @property
    def days_per_cell(self) -> float:
        if self.view_mode == "day":
            return 1.0
        if self.view_mode == "week":
            return 7.0
        return self.month_length_days

    @property
    def pixels_per_day(self) -> float:
        return self.cell_width / self.days_per_cell

    @classmethod
    def from_env(cls) -> "GanttConfig":
        """
        Create configuration from environment variables.

        Reads SITEGANTT_CELL_WIDTH, SITEGANTT_VIEW_MODE and
        SITEGANTT_CASCADE_PAUSE_MS; unset variables keep their defaults.
        """
        kwargs = {}
        if os.getenv("SITEGANTT_CELL_WIDTH"):
            kwargs["cell_width"] = float(os.environ["SITEGANTT_CELL_WIDTH"])
        if os.getenv("SITEGANTT_VIEW_MODE"):
            kwargs["view_mode"] = os.environ["SITEGANTT_VIEW_MODE"].lower()
        if os.getenv("SITEGANTT_CASCADE_PAUSE_MS"):
            kwargs["cascade_pause_ms"] = int(os.environ["SITEGANTT_CASCADE_PAUSE_MS"])
        return cls(**kwargs)
