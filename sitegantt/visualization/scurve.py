import logging

import matplotlib.dates as mdates
import matplotlib.pyplot as plt
from matplotlib.lines import Line2D

from sitegantt.services.accumulation import compute_scurve
from sitegantt.services.coordinates import TimeRange
from sitegantt.services.weighting import FINANCIAL
from sitegantt.utils.dates import format_date, today

logger = logging.getLogger(__name__)


def create_scurve_chart(tasks, time_range=None, mode=FINANCIAL, filename=None, show=True,
                        as_of=None, evm=None, title=None):
    """
    Plot the cumulative planned and actual progress curves.

    The actual curve stops at the last recorded actual activity.

    Args:
        tasks: List of tasks
        time_range: Optional TimeRange; defaults to the task span
        mode: "financial" or "physical"
        filename: Optional filename to save the chart
        show: Whether to display the chart (default: True)
        as_of: Status date (default: today)
        evm: Optional dict from compute_evm, summarised under the title
        title: Optional chart title

    Returns:
        The matplotlib figure
    """
    as_of = as_of or today()
    time_range = time_range or TimeRange.for_project(None, tasks)
    result = compute_scurve(tasks, time_range, mode, as_of)

    dates = [p.date for p in result.points]
    planned = [p.plan for p in result.points]

    cutoff = result.max_actual_date
    actual_points = [p for p in result.points if cutoff is None or p.date <= cutoff]

    fig, ax = plt.subplots(figsize=(12, 6))

    ax.plot(dates, planned, color="tab:blue", linewidth=2)
    ax.fill_between(dates, planned, color="tab:blue", alpha=0.1)
    if cutoff is not None and actual_points:
        ax.plot(
            [p.date for p in actual_points],
            [p.actual for p in actual_points],
            color="green",
            linewidth=2,
        )

    if time_range.contains(as_of):
        ax.axvline(x=as_of, color="red", linestyle="--", linewidth=1.5)

    ax.set_ylim(0, 105)
    ax.set_ylabel("Cumulative progress (%)")
    ax.xaxis.set_major_formatter(mdates.DateFormatter("%d %b %y"))
    fig.autofmt_xdate()
    ax.grid(alpha=0.3)

    heading = title or f"S-Curve ({mode}, status as of {format_date(as_of)})"
    if evm:
        heading += (
            f"\nPV {evm['pv']:,.0f}  EV {evm['ev']:,.0f}  AC {evm['ac']:,.0f}  "
            f"CPI {evm['cpi']:.2f}  SPI {evm['spi']:.2f}"
        )
    ax.set_title(heading)

    legend_elements = [
        Line2D([0], [0], color="tab:blue", lw=2, label=f"Planned ({result.final_plan:.0f}%)"),
        Line2D([0], [0], color="green", lw=2, label="Actual"),
        Line2D([0], [0], color="red", linestyle="--", lw=1.5, label="Status Date"),
    ]
    ax.legend(handles=legend_elements, loc="upper left")

    plt.tight_layout()

    if filename:
        plt.savefig(filename, dpi=150, bbox_inches="tight")

    if show:
        plt.show()

    return fig
