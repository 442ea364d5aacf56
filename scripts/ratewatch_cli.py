#!/usr/bin/env python3
"""
Operator CLI for the rate watch service.

Examples:
    python scripts/ratewatch_cli.py init-db
    python scripts/ratewatch_cli.py fetch-rate
    python scripts/ratewatch_cli.py onboard user@example.com --current-rate 6.5 --rate-threshold 5.5
    python scripts/ratewatch_cli.py run-all
    python scripts/ratewatch_cli.py run-session 42
    python scripts/ratewatch_cli.py status user@example.com
    python scripts/ratewatch_cli.py test-email user@example.com
"""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from ratewatch.config.database import async_engine, async_session_maker, init_db
from ratewatch.config.settings import settings
from ratewatch.repositories.user_repository import UserRepository
from ratewatch.services.monitor import (
    BatchEvaluationRunner,
    MonitorStatusService,
    SessionLifecycleManager,
)
from ratewatch.services.notification import Notifier, ResendEmailProvider
from ratewatch.services.profile_service import ProfileService
from ratewatch.services.rates import FredRateClient, RateService
from ratewatch.utils.formatters import format_rate
from ratewatch.utils.logging import setup_logging

rate_client = FredRateClient()
email_provider = ResendEmailProvider()


def build_manager(session: AsyncSession) -> SessionLifecycleManager:
    # Runs cycles inline; no task queue involved
    return SessionLifecycleManager(session, rate_client, email_provider)


async def cmd_init_db(args: argparse.Namespace) -> int:
    await init_db()
    logger.success("Database tables created")
    return 0


async def cmd_fetch_rate(args: argparse.Namespace) -> int:
    async with async_session_maker() as session:
        stored = await RateService(session, rate_client).fetch_and_store_latest()
    if stored is None:
        logger.error("No rate could be obtained")
        return 1
    state = "new" if stored.is_new else "already stored"
    logger.info(f"{stored.series} {stored.observation_date}: {format_rate(stored.value)} ({state})")
    return 0


async def cmd_onboard(args: argparse.Namespace) -> int:
    data = {
        "current_rate": args.current_rate,
        "benchmark_rate_threshold": args.rate_threshold,
        "break_even_months_threshold": args.break_even_months,
        "loan_balance": args.loan_balance,
        "remaining_term_months": args.term_months,
        "closing_cost_dollars": args.closing_cost_dollars,
        "closing_cost_percent": args.closing_cost_percent,
        "email_alerts_enabled": not args.no_email,
    }
    async with async_session_maker() as session:
        profiles = ProfileService(session, lifecycle=build_manager(session))
        user = await profiles.get_or_create_user(args.email, args.name)
        result = await profiles.submit_onboarding(user.id, data)
        if not result.success:
            logger.error(result.error)
            return 1
        session_id = result.data["session_id"]
        logger.info(f"Monitoring started: session {session_id}")

        if not args.no_run:
            cycle = await build_manager(session).run_now(session_id)
            logger.info(f"First evaluation: {cycle.outcome}")
    return 0


async def cmd_run_all(args: argparse.Namespace) -> int:
    runner = BatchEvaluationRunner(async_session_maker, build_manager, args.concurrency)
    result = await runner.run_all()
    for item in result.results:
        logger.info(f"  session {item['session_id']}: {item['outcome']}")
    return 1 if result.failed else 0


async def cmd_run_session(args: argparse.Namespace) -> int:
    async with async_session_maker() as session:
        cycle = await build_manager(session).run_now(args.session_id)
    logger.info(f"Session {cycle.session_id}: {cycle.outcome}")
    if cycle.triggered_reason:
        logger.info(cycle.triggered_reason)
    if cycle.skipped_reason:
        logger.info(f"Skipped: {cycle.skipped_reason}")
    return 0 if cycle.error is None else 1


async def cmd_session_action(args: argparse.Namespace) -> int:
    async with async_session_maker() as session:
        manager = build_manager(session)
        action = getattr(manager, args.command)
        result = await action(args.session_id)
        if not result.success:
            logger.error(result.error)
            return 1
        logger.info(f"Session {args.session_id}: {result.data['status']}")

        if args.command == "resume":
            cycle = await manager.run_now(args.session_id)
            logger.info(f"Evaluation after resume: {cycle.outcome}")
    return 0


async def cmd_status(args: argparse.Namespace) -> int:
    async with async_session_maker() as session:
        user = await UserRepository(session).get_by_email(args.email)
        if user is None:
            logger.error(f"No user with email {args.email}")
            return 1
        status = await MonitorStatusService(session).get_monitor_status(user.id)

    logger.info(f"{status.series['name']} ({status.series['source']})")
    if status.latest_rate is not None:
        logger.info(
            f"Latest rate: {format_rate(status.latest_rate.value)} "
            f"({status.latest_rate.observation_date})"
        )
    if status.session is None:
        logger.info("No monitoring session")
        return 0

    monitor_session = status.session
    logger.info(
        f"Session {monitor_session.id}: {monitor_session.status} "
        f"(last check {monitor_session.last_check_at})"
    )
    if monitor_session.last_error:
        logger.info(f"Last error: {monitor_session.last_error}")
    for run in status.runs[: args.limit]:
        logger.info(f"  {run.ran_at:%Y-%m-%d %H:%M} {run.outcome} {run.triggered_reason or ''}")
    return 0


async def cmd_test_email(args: argparse.Namespace) -> int:
    async with async_session_maker() as session:
        result = await Notifier(session, email_provider).send_test_email(
            args.email, args.name or "there"
        )
    if not result.success:
        logger.error(f"Test email failed: {result.error}")
        return 1
    logger.success(f"Test email sent (id={result.data['provider_id']})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Rate watch operator commands")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create database tables").set_defaults(handler=cmd_init_db)
    sub.add_parser("fetch-rate", help="Fetch and store the latest benchmark rate").set_defaults(
        handler=cmd_fetch_rate
    )

    onboard = sub.add_parser("onboard", help="Save thresholds and start monitoring")
    onboard.add_argument("email")
    onboard.add_argument("--name")
    onboard.add_argument("--current-rate", required=True)
    onboard.add_argument("--rate-threshold")
    onboard.add_argument("--break-even-months")
    onboard.add_argument("--loan-balance")
    onboard.add_argument("--term-months")
    onboard.add_argument("--closing-cost-dollars")
    onboard.add_argument("--closing-cost-percent")
    onboard.add_argument("--no-email", action="store_true", help="Disable email alerts")
    onboard.add_argument(
        "--no-run", action="store_true", help="Do not run the first evaluation inline"
    )
    onboard.set_defaults(handler=cmd_onboard)

    run_all = sub.add_parser("run-all", help="Evaluate every active session")
    run_all.add_argument("--concurrency", type=int, default=None)
    run_all.set_defaults(handler=cmd_run_all)

    run_session = sub.add_parser("run-session", help="Run one session now (ignores cooldown)")
    run_session.add_argument("session_id", type=int)
    run_session.set_defaults(handler=cmd_run_session)

    for action in ("pause", "resume", "stop"):
        action_parser = sub.add_parser(action, help=f"{action.capitalize()} a session")
        action_parser.add_argument("session_id", type=int)
        action_parser.set_defaults(handler=cmd_session_action)

    status = sub.add_parser("status", help="Show a user's monitoring status")
    status.add_argument("email")
    status.add_argument("--limit", type=int, default=10)
    status.set_defaults(handler=cmd_status)

    test_email = sub.add_parser("test-email", help="Send a test email (no dedupe)")
    test_email.add_argument("email")
    test_email.add_argument("--name")
    test_email.set_defaults(handler=cmd_test_email)

    return parser


async def run(args: argparse.Namespace) -> int:
    try:
        return await args.handler(args)
    finally:
        await rate_client.close()
        await email_provider.close()
        await async_engine.dispose()


def main() -> None:
    setup_logging(settings.log_level)
    args = build_parser().parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
