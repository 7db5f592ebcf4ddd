"""
Scheduler — run the provisioning cycle once, or forever with a fixed pause.

Infrastructure layer: uses APScheduler (3.x) for lightweight in-process
scheduling. The refresh job carries a one-shot DateTrigger and re-arms
itself when a cycle ends, so the interval is the pause between the end of
one cycle and the start of the next, however long a cycle takes.

Every cycle runs inside a LoggingExecutionContext for timing and
success/failure logging. A failed cycle is only logged; the next one
starts again from scratch.

Shutdown: SIGINT/SIGTERM stop the scheduler and terminate the process at
once with status 0. The in-flight cycle is abandoned, not awaited.
"""

from __future__ import annotations

import logging
import os
import signal
import sys
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.date import DateTrigger
from railway import FailureDescription, LoggingExecutionContext
from railway.result import Result

from contract_provider.domain.models import ProvisioningOutcome

log = structlog.get_logger()

JOB_ID = "contract_provider_refresh"
_OPERATION = "ContractProvisioning"


def _log_completed(outcome: ProvisioningOutcome) -> None:
    log.info(
        "scheduler.job_completed",
        ca_fetched=outcome.ca_fetched,
        certificate_issued=outcome.certificate_issued,
        chain_length=outcome.chain_length,
    )


def _log_failed(error: FailureDescription) -> None:
    log.error("scheduler.job_failed", failure=error.describe())


def run_once(
    provision_fn: Callable[[], Result[ProvisioningOutcome]],
) -> Result[ProvisioningOutcome]:
    """Execute exactly one cycle and return its result."""
    return (
        LoggingExecutionContext(operation=_OPERATION)
        .execute(provision_fn)
        .peek(_log_completed)
        .peek_failure(_log_failed)
    )


def schedule_refresh(
    scheduler: BaseScheduler,
    provision_fn: Callable[[], Result[ProvisioningOutcome]],
    interval: timedelta,
) -> None:
    """
    Add the refresh job to `scheduler`, due immediately.

    Each run ends by re-adding the job under the same id for `interval`
    after the cycle finished. misfire_grace_time=None keeps a late run from
    being dropped, which would otherwise end the loop.
    """
    ctx = LoggingExecutionContext(operation=_OPERATION)

    def _arm(run_date: datetime) -> None:
        scheduler.add_job(
            _job,
            trigger=DateTrigger(run_date=run_date),
            id=JOB_ID,
            name="Contract and certificate refresh",
            next_run_time=run_date,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=None,
            replace_existing=True,
        )

    def _job() -> None:
        try:
            ctx.execute(provision_fn).peek(_log_completed).peek_failure(_log_failed)
        finally:
            next_run = datetime.now(UTC) + interval
            _arm(next_run)
            log.debug("scheduler.next_cycle", next_run=next_run.isoformat())

    _arm(datetime.now(UTC))


def create_scheduler(
    provision_fn: Callable[[], Result[ProvisioningOutcome]],
    interval: timedelta,
) -> BlockingScheduler:
    """
    Create a configured APScheduler that runs the cycle, pauses `interval`, repeats.

    The first cycle fires immediately when the scheduler starts.

    Returns:
        A configured BlockingScheduler (call .start() to begin).
    """
    scheduler = BlockingScheduler()
    schedule_refresh(scheduler, provision_fn, interval)
    _register_shutdown_signals(scheduler)
    return scheduler


def _register_shutdown_signals(scheduler: BaseScheduler) -> None:
    """Register SIGINT and SIGTERM handlers that exit without awaiting the running job."""

    def _shutdown(signum: int, frame: object) -> None:
        sig_name = signal.Signals(signum).name
        log.info("scheduler.shutdown_requested", signal=sig_name)
        scheduler.shutdown(wait=False)
        # Interpreter exit would join the executor's worker threads.
        logging.shutdown()
        sys.stdout.flush()
        sys.stderr.flush()
        os._exit(0)

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)
