"""
Rate check tasks.

check_all_active_sessions runs one evaluation cycle per active session
(daily, enqueued by the scheduler). evaluate_session runs a single cycle
and is enqueued on create, start-over and resume.
"""

import threading
from typing import Any

import dramatiq
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from jobs.async_runner import run_async
from jobs.broker import broker  # noqa: F401  (registers the Redis broker)
from jobs.utils.database import task_session_maker
from ratewatch.services.monitor.batch import BatchEvaluationRunner
from ratewatch.services.monitor.lifecycle import SessionLifecycleManager
from ratewatch.services.notification.email_provider import ResendEmailProvider
from ratewatch.services.rates.fred_client import FredRateClient
from ratewatch.utils.exceptions import MissingPreconditionError, SessionNotFoundError

BATCH_TIME_LIMIT_MS = 30 * 60 * 1000
SESSION_TIME_LIMIT_MS = 2 * 60 * 1000

# HTTP clients are bound to the event loop of the worker thread
_clients = threading.local()


def _get_rate_source() -> FredRateClient:
    client = getattr(_clients, "rate_source", None)
    if client is None:
        client = FredRateClient()
        _clients.rate_source = client
    return client


def _get_email_provider() -> ResendEmailProvider:
    provider = getattr(_clients, "email_provider", None)
    if provider is None:
        provider = ResendEmailProvider()
        _clients.email_provider = provider
    return provider


def build_lifecycle_manager(session: AsyncSession) -> SessionLifecycleManager:
    """Lifecycle manager wired to the worker's clients and task queue."""
    return SessionLifecycleManager(
        session,
        rate_source=_get_rate_source(),
        email_provider=_get_email_provider(),
        evaluation_requester=request_evaluation,
    )


def request_evaluation(session_id: int) -> None:
    """Enqueue a single-session evaluation cycle."""
    evaluate_session.send(session_id)


@dramatiq.actor(max_retries=0, time_limit=BATCH_TIME_LIMIT_MS)
def check_all_active_sessions() -> dict[str, Any]:
    """
    Evaluate every active session.

    Per-session failures are isolated by the batch runner; the batch
    itself is not retried (the next scheduled run is the retry).
    """
    logger.info("Starting rate check for all active sessions...")
    runner = BatchEvaluationRunner(task_session_maker, build_lifecycle_manager)
    result = run_async(runner.run_all())
    logger.info(
        f"Rate check complete: {result.checked} checked, "
        f"{result.triggered} triggered, {result.failed} failed"
    )
    return result.to_dict()


async def _evaluate_session_async(session_id: int) -> dict[str, Any]:
    async with task_session_maker() as session:
        manager = build_lifecycle_manager(session)
        cycle = await manager.run_evaluation(session_id)
        return cycle.to_dict()


@dramatiq.actor(
    max_retries=3,
    time_limit=SESSION_TIME_LIMIT_MS,
    throws=(MissingPreconditionError, SessionNotFoundError),
)
def evaluate_session(session_id: int) -> dict[str, Any]:
    """
    Run one evaluation cycle for a session.

    Non-active sessions are skipped, so redundant deliveries are harmless.
    """
    result = run_async(_evaluate_session_async(session_id))
    logger.info(f"Session {session_id} evaluation: {result['outcome']}")
    return result
