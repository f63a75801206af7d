"""Worker process for the scheduled vacation jobs.

Runs an asyncio loop that executes the daily accrual sweep and then the
balance audit for every company, once per interval.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from vacation_engine.config import get_settings
from vacation_engine.db import get_session_factory
from vacation_engine.services.accrual import run_daily_accrual_all_companies
from vacation_engine.services.auditor import run_scheduled_audit
from vacation_engine.services.clock import get_clock

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


async def run_daily_jobs(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """One pass of the daily jobs: accrue first so the audit sees fresh balances."""
    today = get_clock().today()
    logger.info("Running vacation accrual sweep for %s", today)
    try:
        async with session_factory() as session:
            results = await run_daily_accrual_all_companies(session, today)
        logger.info(
            "Accrual sweep complete for %s: companies=%d updated=%d errors=%d",
            today,
            len(results),
            sum(r.updated for r in results),
            sum(r.errors for r in results),
        )
    except Exception:
        logger.exception("Accrual sweep failed for %s", today)

    try:
        async with session_factory() as session:
            audit = await run_scheduled_audit(session)
        logger.info(
            "Scheduled audit complete for %s: audited=%d failed_runs=%d",
            today,
            audit.audited,
            audit.failed_runs,
        )
    except Exception:
        logger.exception("Scheduled audit failed for %s", today)


async def run_worker_loop() -> None:
    """Main worker loop."""
    interval = get_settings().worker_interval_seconds
    logger.info("Vacation worker started, interval=%ds", interval)
    session_factory = get_session_factory()

    while True:
        await run_daily_jobs(session_factory)
        await asyncio.sleep(interval)


def main() -> None:
    """Entry point for the worker process."""
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    asyncio.run(run_worker_loop())


if __name__ == "__main__":
    main()
