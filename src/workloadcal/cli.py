"""Command-line interface for the workload capacity calendar."""

import argparse
import asyncio
import logging
import sys
from datetime import date, timedelta
from typing import Optional

from workloadcal.calendar.aggregator import build_member_workloads
from workloadcal.calendar.controller import CalendarViewController
from workloadcal.calendar.palette import MemberColorArena
from workloadcal.calendar.periods import week_start
from workloadcal.domain.config import CalendarConfig
from workloadcal.domain.models import (
    Holiday,
    LeaveStatus,
    PlanningMetrics,
    TaskRef,
    TeamMember,
    UserLeave,
    ViewLevel,
    backlog_tasks,
)
from workloadcal.domain.public_holidays import load_public_holidays
from workloadcal.output.pdf_generator import CalendarPDFGenerator
from workloadcal.output.text_renderer import TextCalendarRenderer
from workloadcal.scheduling.collaborator import InMemorySlotBook
from workloadcal.scheduling.drag_drop import (
    DragDropAssignmentController,
    DropStatus,
    describe_segments,
)
from workloadcal.scheduling.segmentation import InvalidDurationError, valid_segment_counts
from workloadcal.validation.validator import ConflictType, WorkloadValidator

logger = logging.getLogger(__name__)


def create_sample_team(count: int = 5) -> list[TeamMember]:
    """Create sample collaborators for testing."""
    names = [
        "Alice Martin", "Bruno Petit", "Chloe Durand", "David Leroy",
        "Emma Moreau", "Farid Simon", "Gaelle Laurent", "Hugo Michel",
        "Ines Garcia", "Jules Bernard", "Karim Roux", "Lea Fournier",
    ]
    departments = ["Operations", "Engineering", "Finance"]

    team = []
    for i in range(count):
        name = names[i % len(names)]
        if i >= len(names):
            name = f"{name} {i // len(names) + 1}"
        team.append(
            TeamMember(
                id=f"U{i + 1:03d}",
                name=name,
                job_title="Consultant" if i % 2 else "Analyst",
                department=departments[i % len(departments)],
            )
        )
    return team


def create_sample_tasks(count: int = 12) -> list[TaskRef]:
    """Create sample tasks with a mix of durations (some unknown)."""
    durations = [None, 1, 2, 4, 6, 3, 2, 8, 1, 4]
    priorities = ["urgent", "high", "medium", "low"]
    return [
        TaskRef(
            id=f"T{i + 1:03d}",
            title=f"Task {i + 1}",
            priority=priorities[i % len(priorities)],
            duration_half_days=durations[i % len(durations)],
        )
        for i in range(count)
    ]


def create_sample_leaves(team: list[TeamMember], start: date) -> list[UserLeave]:
    """A few leave periods relative to the first Monday of the range."""
    leaves = []
    if len(team) > 1:
        leaves.append(
            UserLeave(
                id="L001",
                user_id=team[1].id,
                start_date=start + timedelta(days=2),
                end_date=start + timedelta(days=3),
                leave_type="paid leave",
            )
        )
    if len(team) > 2:
        leaves.append(
            UserLeave(
                id="L002",
                user_id=team[2].id,
                start_date=start + timedelta(days=7),
                end_date=start + timedelta(days=11),
                status=LeaveStatus.PENDING,
                leave_type="training",
            )
        )
    return leaves


async def place_tasks(
    drag: DragDropAssignmentController,
    book: InMemorySlotBook,
    team: list[TeamMember],
    tasks: list[TaskRef],
    start: date,
) -> int:
    """Drag every task onto the first free half-day of a collaborator.

    Tasks are dealt round-robin; multi-day tasks confirm the two-segment
    split when one is offered.

    Returns:
        Number of tasks placed.
    """
    placed = 0
    for i, task in enumerate(tasks):
        member = team[i % len(team)]
        position = book.planner.first_available(member.id, start, start + timedelta(days=27))
        if position is None:
            logger.warning("No free half-day for %s, skipping task %s", member.name, task.id)
            continue

        drag.begin_task_drag(task)
        drag.drag_over(member.id, position.day, position.half_day)
        outcome = await drag.drop(member.id, position.day, position.half_day)

        if outcome.status is DropStatus.DIALOG_OPENED:
            options = drag.placement_dialog.options
            drag.select_segments(options[1] if len(options) > 1 else options[0])
            outcome = await drag.confirm_placement()
            if not outcome.succeeded:
                drag.cancel_placement()

        if outcome.succeeded:
            placed += 1
        else:
            print(f"  Could not place {task.id}: {outcome.reason or outcome.error}")
    return placed


def run_demo(
    member_count: int = 5,
    task_count: int = 12,
    view: str = "month",
    start: Optional[date] = None,
    country: Optional[str] = None,
    output_path: Optional[str] = None,
) -> None:
    """Run a demo planning session and print the resulting calendar."""
    config = CalendarConfig()
    start = week_start(start or date.today())

    team = create_sample_team(member_count)
    tasks = create_sample_tasks(task_count)
    leaves = create_sample_leaves(team, start)
    if country:
        holidays = load_public_holidays(country, {start.year, (start + timedelta(days=365)).year})
    else:
        holidays = [Holiday(date=start + timedelta(days=4), name="Company Day")]

    print(f"Planning {len(tasks)} tasks for {len(team)} collaborators from {start}...")

    book = InMemorySlotBook(holidays=holidays, leaves=leaves, tasks=tasks, config=config)
    drag = DragDropAssignmentController(book, book.resolver, book.planner, config)
    placed = asyncio.run(place_tasks(drag, book, team, tasks, start))

    controller = CalendarViewController(
        view_level=ViewLevel(view),
        anchor_date=start,
        config=config,
    )
    grid = controller.render_records(team, book.slots, holidays, leaves)

    print(f"\n{TextCalendarRenderer().render(grid)}")

    validator = WorkloadValidator(holidays, leaves, config.leave_policy)
    validation = validator.validate(book.slots, tasks)
    range_start, range_end = controller.date_range
    workloads = build_member_workloads(
        team, book.slots, holidays, leaves, range_start, range_end, config.leave_policy
    )
    metrics = PlanningMetrics.calculate(
        workloads,
        tasks,
        book.planned_task_ids,
        conflict_count=validation.count(ConflictType.LEAVE),
    )

    print(f"Placed {placed}/{len(tasks)} tasks ({len(book.slots)} half-days)")
    print(f"  Backlog: {len(backlog_tasks(tasks, book.planned_task_ids))} tasks")
    print(f"  Capacity used ({controller.period_label}): {metrics.capacity_percent}%")
    print(f"  Overloaded collaborators: {metrics.overloaded_members}")

    if validation.is_valid:
        print("\n  Validation: PASSED")
    else:
        print(f"\n  Validation: FAILED ({len(validation.errors)} errors)")
        for error in validation.errors[:5]:
            print(f"    - {error}")
        if len(validation.errors) > 5:
            print(f"    ... and {len(validation.errors) - 5} more errors")

    if output_path:
        print(f"\nGenerating PDF: {output_path}")
        generator = CalendarPDFGenerator(colors=MemberColorArena(size=config.palette_size))
        generator.generate(grid, output_path, metrics=metrics)
        print("  PDF created successfully!")


def run_segments(duration: int) -> None:
    """Print every way to split a duration into equal segments."""
    print(f"Valid splits of {duration} half-days:")
    for count in valid_segment_counts(duration):
        print(f"  {count:>3}: {describe_segments(duration, count)}")


def main() -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="Workload capacity calendar",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo                        Plan sample tasks, show the month
  %(prog)s demo --view quarter         Show the weekly heatmap
  %(prog)s demo --country FR           Use French public holidays
  %(prog)s demo --output cal.pdf       Generate PDF output

  %(prog)s segments 6                  List valid splits of 6 half-days
        """,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    demo_parser = subparsers.add_parser("demo", help="Run a demo planning session")
    demo_parser.add_argument(
        "--members", "-m",
        type=int,
        default=5,
        help="Number of collaborators to generate (default: 5)",
    )
    demo_parser.add_argument(
        "--tasks", "-t",
        type=int,
        default=12,
        help="Number of tasks to place (default: 12)",
    )
    demo_parser.add_argument(
        "--view",
        type=str,
        default="month",
        choices=[level.value for level in ViewLevel],
        help="Calendar resolution to print (default: month)",
    )
    demo_parser.add_argument(
        "--start", "-s",
        type=date.fromisoformat,
        help="First date to plan from, YYYY-MM-DD (default: today)",
    )
    demo_parser.add_argument(
        "--country",
        type=str,
        help="Country code for public holidays (default: one sample holiday)",
    )
    demo_parser.add_argument(
        "--output", "-o",
        type=str,
        help="Output PDF file path",
    )

    segments_parser = subparsers.add_parser(
        "segments",
        help="List valid segment counts for a duration",
    )
    segments_parser.add_argument("duration", type=int, help="Duration in half-days")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "demo":
        run_demo(
            args.members,
            args.tasks,
            args.view,
            args.start,
            args.country,
            args.output,
        )
        return 0
    elif args.command == "segments":
        try:
            run_segments(args.duration)
        except InvalidDurationError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 2
        return 0
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
