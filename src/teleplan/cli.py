"""Command-line interface for the teleplan telework engine."""

import argparse
import asyncio
import json
import logging
import sys
from datetime import date, datetime, timedelta
from typing import Optional

from teleplan.domain.calendar import Weekday, week_start
from teleplan.domain.models import (
    ApprovalStatus,
    OverrideSource,
    ProfileConstraints,
    TeamTeleworkRule,
    TeleworkMode,
    TeleworkOverride,
    UserTeleworkProfile,
    WeekdayPattern,
    default_weekly_pattern,
)
from teleplan.domain.recurrence import MonthlyRecurrence, WeeklyRecurrence
from teleplan.output.pdf_report import PDFReportGenerator
from teleplan.output.text_report import TextReportGenerator
from teleplan.resolution.resolver import TeleworkResolver
from teleplan.stores.memory import InMemoryTeleworkStore
from teleplan.workflow.service import TeleworkService

logger = logging.getLogger(__name__)

SAMPLE_NAMES = [
    "Alice", "Bob", "Carol", "David", "Eve", "Frank", "Grace", "Henry",
    "Ivy", "Jack", "Kate", "Leo", "Mia", "Noah", "Olivia", "Paul",
]


def create_sample_store(count: int = 5, reference: Optional[date] = None) -> InMemoryTeleworkStore:
    """Create an in-memory store seeded with sample users and rules.

    Args:
        count: Number of users to create.
        reference: Any day of the week the sample overrides fall in.
            Defaults to today.
    """
    monday = week_start(reference or date.today())
    created_at = datetime.combine(monday - timedelta(days=7), datetime.min.time())
    store = InMemoryTeleworkStore()
    user_ids = []

    for i in range(count):
        user_id = f"U{i + 1:03d}"
        user_ids.append(user_id)
        name = SAMPLE_NAMES[i % len(SAMPLE_NAMES)]

        pattern = default_weekly_pattern()
        if i % 3 == 0:
            pattern[Weekday.WEDNESDAY] = WeekdayPattern.REMOTE
        elif i % 3 == 1:
            pattern[Weekday.MONDAY] = WeekdayPattern.REMOTE
            pattern[Weekday.FRIDAY] = WeekdayPattern.REMOTE

        store.add_profile(
            UserTeleworkProfile(
                user_id=user_id,
                display_name=name,
                default_mode=TeleworkMode.REMOTE if i % 5 == 4 else TeleworkMode.OFFICE,
                weekly_pattern=pattern,
                constraints=ProfileConstraints(requires_approval=i % 4 == 0),
                created_at=created_at,
                created_by="admin",
            )
        )

    # Sample requests for the first user: one approved, one pending
    if user_ids:
        first = user_ids[0]
        for offset, status in ((3, ApprovalStatus.APPROVED), (1, ApprovalStatus.PENDING)):
            d = monday + timedelta(days=offset)
            store.add_override(
                TeleworkOverride(
                    id=TeleworkOverride.make_id(first, d),
                    user_id=first,
                    date=d,
                    mode=TeleworkMode.REMOTE,
                    reason="Sample request",
                    approval_status=status,
                    created_at=created_at,
                    created_by=first,
                    approved_by="manager" if status == ApprovalStatus.APPROVED else None,
                )
            )
        friday = monday + timedelta(days=4)
        store.add_override(
            TeleworkOverride(
                id=TeleworkOverride.make_id(first, friday, OverrideSource.ADMIN_IMPOSED),
                user_id=first,
                date=friday,
                mode=TeleworkMode.OFFICE,
                source=OverrideSource.ADMIN_IMPOSED,
                priority=10,
                reason="Client visit",
                approval_status=ApprovalStatus.APPROVED,
                created_at=created_at,
                created_by="admin",
                approved_by="admin",
            )
        )

    store.add_team_rule(
        TeamTeleworkRule(
            id="rule-sprint-planning",
            name="Sprint planning",
            required_mode=TeleworkMode.OFFICE,
            recurrence=WeeklyRecurrence(Weekday.MONDAY),
            priority=2,
            exemptions=set(user_ids[1:2]),
            affected_user_ids=set(user_ids),
            created_at=created_at,
            created_by="admin",
        )
    )
    store.add_team_rule(
        TeamTeleworkRule(
            id="rule-all-hands",
            name="Monthly all-hands",
            required_mode=TeleworkMode.OFFICE,
            recurrence=MonthlyRecurrence(1),
            affected_user_ids=set(user_ids),
            created_at=created_at,
            created_by="admin",
        )
    )
    return store


async def _build_report(
    count: int,
    reference: date,
    weeks: int,
) -> tuple[list, list]:
    store = create_sample_store(count, reference)
    resolver = TeleworkResolver(store, store, store)
    user_ids = [f"U{i + 1:03d}" for i in range(count)]

    start = week_start(reference)
    end = start + timedelta(days=7 * weeks - 1)
    views = await asyncio.gather(*(resolver.resolve_week(u, start) for u in user_ids))
    stats = await asyncio.gather(*(resolver.calculate_stats(u, start, end) for u in user_ids))
    return list(views), list(stats)


def run_demo(
    count: int = 5,
    reference: Optional[date] = None,
    weeks: int = 4,
    as_json: bool = False,
    output_path: Optional[str] = None,
) -> None:
    """Resolve a sample week for each user and print it."""
    reference = reference or date.today()
    views, stats = asyncio.run(_build_report(count, reference, weeks))

    if as_json:
        payload = [
            {"week": view.to_dict(), "stats": s.to_dict()}
            for view, s in zip(views, stats)
        ]
        print(json.dumps(payload, indent=2))
    else:
        generator = TextReportGenerator()
        for view, s in zip(views, stats):
            print(generator.generate_to_string(view, s))

    if output_path and views:
        logger.info("Writing PDF report to %s", output_path)
        PDFReportGenerator().generate(views[0], output_path, stats=stats[0])
        if not as_json:
            print(f"PDF created: {output_path}")


async def _request_walkthrough(reference: date) -> list[str]:
    store = create_sample_store(2, reference)
    service = TeleworkService(store, store, store)
    monday = week_start(reference)
    lines = []

    for offset in (2, 3, 4):
        d = monday + timedelta(days=offset)
        result = await service.request_override("U002", d, TeleworkMode.REMOTE, created_by="U002")
        lines.append(
            f"{d.isoformat()} remote request: {result.override.approval_status.value}, "
            f"valid={result.validation.is_valid}"
        )
        for conflict in result.validation.conflicts:
            lines.append(f"    {conflict}")

    for override in await service.get_pending_overrides():
        if override.date.weekday() == 4:
            await service.reject_override(override.id, "manager", "Weekly limit reached")
            lines.append(f"{override.id}: rejected")
        else:
            await service.approve_override(override.id, "manager")
            lines.append(f"{override.id}: approved")

    view = await service.resolver.resolve_week("U002", monday)
    lines.append(TextReportGenerator(show_warnings=False).generate_to_string(view))
    return lines


def run_request_demo(reference: Optional[date] = None) -> None:
    """Walk one user through override requests, approval and rejection."""
    for line in asyncio.run(_request_walkthrough(reference or date.today())):
        print(line)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date (expected YYYY-MM-DD): {value}")


def main() -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="teleplan - Hybrid-work day-mode resolution",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo                         Resolve this week for 5 sample users
  %(prog)s demo --count 10              Resolve this week for 10 sample users
  %(prog)s demo --week 2024-01-15       Resolve the week containing a date
  %(prog)s demo --json                  Print JSON instead of text
  %(prog)s demo --output week.pdf       Also write a PDF for the first user

  %(prog)s request-demo                 Walk through the approval workflow
        """,
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    demo_parser = subparsers.add_parser("demo", help="Resolve a sample week")
    demo_parser.add_argument(
        "--count", "-c",
        type=int,
        default=5,
        help="Number of sample users (default: 5)",
    )
    demo_parser.add_argument(
        "--week", "-w",
        type=_parse_date,
        help="Any day of the week to resolve (default: today)",
    )
    demo_parser.add_argument(
        "--weeks",
        type=int,
        default=4,
        help="Weeks covered by the statistics (default: 4)",
    )
    demo_parser.add_argument(
        "--json",
        action="store_true",
        help="Print machine-readable JSON",
    )
    demo_parser.add_argument(
        "--output", "-o",
        type=str,
        help="Output PDF file path",
    )

    request_parser = subparsers.add_parser(
        "request-demo",
        help="Walk through override requests and approvals",
    )
    request_parser.add_argument(
        "--week", "-w",
        type=_parse_date,
        help="Any day of the week to use (default: today)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command == "demo":
        run_demo(args.count, args.week, args.weeks, args.json, args.output)
        return 0
    elif args.command == "request-demo":
        run_request_demo(args.week)
        return 0
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
