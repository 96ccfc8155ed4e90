import asyncio
from datetime import date

from sitegantt.config import GanttConfig
from sitegantt.domain.project import Expense, Project
from sitegantt.domain.task import Task
from sitegantt.services.commit import GanttSession, InMemoryStore
from sitegantt.services.coordinates import TimeRange
from sitegantt.services.evm import compute_evm
from sitegantt.services.rollup import group_summaries
from sitegantt.services.weighting import kpi_stats
from sitegantt.visualization.gantt import create_gantt_chart
from sitegantt.visualization.scurve import create_scurve_chart

PROJECT_ID = "P1"
STATUS_DATE = date(2025, 4, 20)


def create_sample_project():
    """A small house build: two work packages, a finish-to-start chain and some spend."""
    project = Project(PROJECT_ID, "Riverside House", "2025-04-01", "2025-06-30", "in-progress", "RH-01")

    tasks = [
        Task("G1", PROJECT_ID, "Substructure", type="group", category="Civil", order=1),
        Task("T1", PROJECT_ID, "Site clearance", category="Civil", order=1,
             plan_start_date="2025-04-01", plan_end_date="2025-04-05",
             actual_start_date="2025-04-01", actual_end_date="2025-04-06",
             progress=100, cost=20000, status="completed", parent_task_id="G1"),
        Task("T2", PROJECT_ID, "Excavation", category="Civil", order=2,
             plan_start_date="2025-04-06", plan_end_date="2025-04-15",
             actual_start_date="2025-04-08", progress=60, cost=50000,
             status="in-progress", parent_task_id="G1", predecessors=["T1"]),
        Task("T3", PROJECT_ID, "Foundations", category="Civil", order=3,
             plan_start_date="2025-04-16", plan_end_date="2025-04-30",
             cost=120000, parent_task_id="G1", predecessors=["T2"]),
        Task("G2", PROJECT_ID, "Superstructure", type="group", category="Structure", order=2),
        Task("T4", PROJECT_ID, "Ground floor slab", category="Structure", order=1,
             plan_start_date="2025-05-01", plan_end_date="2025-05-14",
             cost=90000, parent_task_id="G2", predecessors=["T3"]),
        Task("T5", PROJECT_ID, "Blockwork walls", category="Structure", order=2,
             plan_start_date="2025-05-15", plan_end_date="2025-06-10",
             cost=140000, parent_task_id="G2", predecessors=["T4"]),
        Task("T6", PROJECT_ID, "Roof", category="Structure", subcategory="Roofing", order=1,
             plan_start_date="2025-06-11", plan_end_date="2025-06-30",
             cost=80000, predecessors=["T5"]),
    ]

    expenses = [
        Expense("E1", PROJECT_ID, "2025-04-05", 21000, "Clearance contractor", "CIV-01"),
        Expense("E2", PROJECT_ID, "2025-04-15", 25000, "Excavator hire", "CIV-02"),
    ]

    return project, tasks, expenses


def print_report(session, expenses, as_of):
    print("Construction Schedule Report")
    print("============================")
    for task in sorted(session.tasks, key=lambda t: (t.category, t.order, t.id)):
        print(
            f"  {task.id:<3} {task.name:<20} {task.plan_start_date} -> {task.plan_end_date}"
            f"  {task.progress:>5.0f}%"
        )

    print("\nGroup rollups:")
    for group_id, summary in group_summaries(session.tasks).items():
        print(f"  {group_id}: {summary.to_dict()}")

    kpi = kpi_stats(session.tasks, as_of)
    print(f"\nProgress {kpi['progress']:.1f}% vs planned {kpi['plan_to_date']:.1f}%"
          f" (variance {kpi['variance_days']} days)")

    evm = compute_evm(session.tasks, expenses, as_of)
    print(
        f"PV {evm['pv']:,.0f}  EV {evm['ev']:,.0f}  AC {evm['ac']:,.0f}  "
        f"CPI {evm['cpi']:.2f}  SPI {evm['spi']:.2f}  EAC {evm['eac']:,.0f}"
    )
    return evm


async def run_example(output=None, scurve_output=None, show=False):
    """
    Load the sample project, drag Site clearance three days later and report.

    The move cascades along T1 -> T2 -> T3 -> T4 -> T5 -> T6.
    """
    project, tasks, expenses = create_sample_project()
    store = InMemoryStore(tasks, expenses, [project])
    config = GanttConfig(cascade_pause_ms=0)
    session = GanttSession(store, PROJECT_ID, config)
    await session.load()

    pixels = 3 * config.pixels_per_day
    session.start_drag("T1", "move", "plan", 100.0)
    session.pointer_move(100.0 + pixels)
    plan = await session.release()
    if plan is not None:
        print(f"Moved T1 by 3 days, cascaded to: {', '.join(plan.patched_ids)}")

    evm = print_report(session, expenses, STATUS_DATE)

    time_range = TimeRange.for_project(project, session.tasks)
    if output:
        create_gantt_chart(session.tasks, time_range, output, show=show, status_date=STATUS_DATE)
    if scurve_output:
        create_scurve_chart(session.tasks, time_range, filename=scurve_output, show=show,
                            as_of=STATUS_DATE, evm=evm)
    return session


def main(output=None, scurve_output=None, show=False):
    return asyncio.run(run_example(output, scurve_output, show))
