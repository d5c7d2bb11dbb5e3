"""
Daily sweep that advances study states from the calendar.

Run standalone with ``python -m bookclub.workers.transition_sweep``.
"""

import argparse
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bookclub.core.database import AsyncSessionLocal
from bookclub.core.exceptions import StudyNotFound
from bookclub.core.settings import settings
from bookclub.models import StudyState
from bookclub.services.lifecycle import advance
from bookclub.services.locks import StudyLockRegistry, study_locks
from bookclub.services.repository import StudyRepository
from bookclub.utils.clock import Clock, system_clock

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    """Outcome of one sweep run."""

    today: Optional[date] = None
    closed: List[int] = field(default_factory=list)
    ended: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)
    skipped: bool = False


class TransitionSweep:
    """Applies OPEN -> CLOSE and CLOSE -> END to every candidate study.

    Each study is handled in its own session and transaction, so one failing
    study is logged and skipped without blocking the rest. Runs never
    overlap: a call made while another run is in progress returns at once.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
        clock: Clock = system_clock,
        locks: StudyLockRegistry = study_locks,
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.locks = locks
        self._guard = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._guard.locked()

    async def run(self, today: Optional[date] = None) -> SweepResult:
        """Run one sweep against ``today`` (defaults to the clock)."""
        if self._guard.locked():
            logger.warning("Study sweep already in progress, skipping this trigger")
            return SweepResult(today=today, skipped=True)

        async with self._guard:
            today = today or self.clock.today()
            result = SweepResult(today=today)
            logger.info(f"Study sweep started for {today}")

            # Step 1: OPEN -> CLOSE
            for study_id in await self._candidate_ids(StudyState.OPEN):
                if await self._process(study_id, StudyState.OPEN, today, result):
                    result.closed.append(study_id)

            # Step 2: CLOSE -> END
            for study_id in await self._candidate_ids(StudyState.CLOSE):
                if await self._process(study_id, StudyState.CLOSE, today, result):
                    result.ended.append(study_id)

            logger.info(
                f"Study sweep for {today} finished: closed={len(result.closed)}, "
                f"ended={len(result.ended)}, failed={len(result.failed)}"
            )
            return result

    async def _candidate_ids(self, state: StudyState) -> List[int]:
        async with self.session_factory() as db:
            return await StudyRepository(db).find_ids_by_state(state)

    async def _process(
        self, study_id: int, expected: StudyState, today: date, result: SweepResult
    ) -> bool:
        try:
            return await self._advance_study(study_id, expected, today)
        except Exception:
            logger.exception(f"Study sweep failed for study {study_id}")
            result.failed.append(study_id)
            return False

    async def _advance_study(self, study_id: int, expected: StudyState, today: date) -> bool:
        """Advance one study under its lock. Returns True if its state changed."""
        async with self.locks.hold(study_id=study_id):
            async with self.session_factory() as db:
                try:
                    study = await StudyRepository(db).find_by_id(study_id, for_update=True)

                    # Changed since the candidate list was read
                    if study.state != expected:
                        return False

                    previous = study.state
                    if not advance(study, today):
                        return False

                    await db.commit()
                except StudyNotFound:
                    await db.rollback()
                    logger.info(f"Study {study_id} was deleted before the sweep reached it")
                    return False
                except Exception:
                    await db.rollback()
                    raise

        logger.info(f"Study {study_id}: {previous.value} -> {study.state.value}")
        return True


class SweepScheduler:
    """Runs the sweep once a day on an APScheduler cron trigger."""

    JOB_ID = "study_transition_sweep"

    def __init__(self, sweep: Optional[TransitionSweep] = None):
        self.sweep = sweep or TransitionSweep()
        self.scheduler = AsyncIOScheduler(timezone=settings.timezone)
        self.is_running = False

    def _trigger(self) -> CronTrigger:
        return CronTrigger(
            hour=settings.sweep_hour,
            minute=settings.sweep_minute,
            timezone=settings.timezone,
        )

    async def _run_job(self):
        try:
            await self.sweep.run()
        except Exception as e:
            logger.error(f"Study sweep job crashed: {e}")

    async def start(self):
        """Start the scheduler."""
        if self.is_running:
            logger.warning("Study sweep scheduler already running")
            return

        self.scheduler.add_job(
            self._run_job,
            self._trigger(),
            id=self.JOB_ID,
            name="Daily study state sweep",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=3600,
            replace_existing=True,
        )
        self.scheduler.start()
        self.is_running = True

        logger.info(
            f"Study sweep scheduled daily at "
            f"{settings.sweep_hour:02d}:{settings.sweep_minute:02d} ({settings.timezone})"
        )

    async def stop(self):
        """Stop the scheduler."""
        if not self.is_running:
            return

        self.scheduler.shutdown(wait=False)
        self.is_running = False
        logger.info("Study sweep scheduler stopped")


# Global scheduler instance
sweep_scheduler = SweepScheduler()


async def _serve():
    await sweep_scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        await sweep_scheduler.stop()


def main(argv: Optional[List[str]] = None):
    """Run the sweep scheduler as a standalone worker, or a single sweep."""
    parser = argparse.ArgumentParser(description="Study state sweep worker")
    parser.add_argument("--once", action="store_true", help="Run one sweep and exit")
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Sweep as if today were this date (YYYY-MM-DD), implies --once",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.once or args.date:
        result = asyncio.run(sweep_scheduler.sweep.run(today=args.date))
        logger.info(f"Sweep result: {result}")
        return

    logger.info("Starting study sweep worker...")
    try:
        asyncio.run(_serve())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        logger.info("Study sweep worker stopped")


if __name__ == "__main__":
    main()
