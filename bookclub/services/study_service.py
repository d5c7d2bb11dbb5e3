"""Study service for creating, updating and deleting studies."""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from bookclub.core.exceptions import StudyError
from bookclub.core.settings import settings
from bookclub.models import Study
from bookclub.schemas import StudyCreate, StudyUpdate
from bookclub.services.account_service import AccountService
from bookclub.services.locks import StudyLockRegistry, study_locks
from bookclub.services.repository import AccountRepository, StudyRepository
from bookclub.services.validation import (
    ensure_capacity_fits,
    ensure_editable,
    ensure_manager,
    ensure_no_active_study,
    validate_create_or_update,
)
from bookclub.utils.clock import Clock, system_clock

logger = logging.getLogger(__name__)


class StudyService:
    """Admin-side study commands. Each command is one transaction."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Clock = system_clock,
        locks: StudyLockRegistry = study_locks,
        allow_update_after_open: Optional[bool] = None,
    ):
        self.db = db
        self.clock = clock
        self.locks = locks
        self.studies = StudyRepository(db)
        self.accounts = AccountRepository(db)
        self.account_service = AccountService(db)
        if allow_update_after_open is None:
            allow_update_after_open = settings.allow_update_after_open
        self.allow_update_after_open = allow_update_after_open

    async def get_study(self, study_id: int) -> Study:
        """Get study by ID; raises StudyNotFound."""
        return await self.studies.find_by_id(study_id)

    async def create_study(self, email: str, data: StudyCreate) -> Study:
        """Open a new study managed by the account behind ``email``."""
        account = await self.account_service.get_by_email(email)

        async with self.locks.hold(account_id=account.id):
            try:
                account = await self.accounts.find_by_id(account.id, for_update=True)
                current_state = await self.account_service.current_study_state(account)
                ensure_no_active_study(account, current_state)
                start_time, end_time = validate_create_or_update(data, self.clock.today())

                study = Study.open(data, account, start_time, end_time)
                await self.studies.save(study)
                account.current_study_id = study.id

                await self.db.commit()
            except StudyError as e:
                await self.db.rollback()
                logger.info(f"Study creation rejected for {email}: {e.code}")
                raise
            except Exception as e:
                await self.db.rollback()
                logger.error(f"Error creating study for {email}: {e}")
                raise

        logger.info(f"Created study {study.id} '{study.name}' managed by {email}")
        return study

    async def update_study(self, email: str, study_id: int, data: StudyUpdate) -> Study:
        """Replace the editable fields of a study. Admin only."""
        account = await self.account_service.get_by_email(email)

        async with self.locks.hold(study_id=study_id):
            try:
                study = await self.studies.find_by_id(study_id, for_update=True)
                ensure_manager(study, account)
                ensure_editable(study, self.allow_update_after_open)
                start_time, end_time = validate_create_or_update(data, self.clock.today())
                ensure_capacity_fits(study, data.size)

                study.apply_update(data, start_time, end_time)

                await self.db.commit()
            except StudyError as e:
                await self.db.rollback()
                logger.info(f"Update of study {study_id} rejected for {email}: {e.code}")
                raise
            except Exception as e:
                await self.db.rollback()
                logger.error(f"Error updating study {study_id}: {e}")
                raise

        logger.info(f"Updated study {study_id} by {email}")
        return study

    async def delete_study(self, email: str, study_id: int) -> Study:
        """Delete a study with its members. Admin only."""
        account = await self.account_service.get_by_email(email)

        async with self.locks.hold(study_id=study_id):
            try:
                study = await self.studies.find_by_id(study_id, for_update=True)
                ensure_manager(study, account)

                detached = await self.accounts.clear_current_study(study_id)
                await self.studies.delete(study)

                await self.db.commit()
            except StudyError as e:
                await self.db.rollback()
                logger.info(f"Deletion of study {study_id} rejected for {email}: {e.code}")
                raise
            except Exception as e:
                await self.db.rollback()
                logger.error(f"Error deleting study {study_id}: {e}")
                raise

        logger.info(f"Deleted study {study_id}, detached {detached} accounts")
        return study
