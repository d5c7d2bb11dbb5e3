"""Enrollment service for applying to and leaving studies."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from bookclub.core.exceptions import (
    AlreadyEnrolled,
    NotEnrolledBefore,
    StudyError,
    StudyFull,
    StudyNotOpen,
)
from bookclub.models import Account, StudyState
from bookclub.services.locks import StudyLockRegistry, study_locks
from bookclub.services.repository import AccountRepository, StudyRepository

logger = logging.getLogger(__name__)


class EnrollmentService:
    """Capacity-aware membership changes.

    The study row and the account row are locked together, every check runs
    before the first mutation, and the study's member set and the account's
    ``current_study_id`` change in the same commit.
    """

    def __init__(self, db: AsyncSession, locks: StudyLockRegistry = study_locks):
        self.db = db
        self.locks = locks
        self.studies = StudyRepository(db)
        self.accounts = AccountRepository(db)

    async def apply(self, account: Account, study_id: int) -> int:
        """Enroll ``account`` in the study and return the study id."""
        account_id = account.id
        async with self.locks.hold(study_id=study_id, account_id=account_id):
            try:
                study = await self.studies.find_by_id(study_id, for_update=True)
                account = await self.accounts.find_by_id(account_id, for_update=True)

                if account.current_study_id is not None:
                    raise AlreadyEnrolled()
                if study.is_full():
                    raise StudyFull()
                if study.state != StudyState.OPEN:
                    raise StudyNotOpen()

                study.add_member(account)
                account.current_study_id = study.id

                await self.db.commit()
            except StudyError as e:
                await self.db.rollback()
                logger.info(f"Apply of account {account_id} to study {study_id} rejected: {e.code}")
                raise
            except Exception as e:
                await self.db.rollback()
                logger.error(f"Error applying account {account_id} to study {study_id}: {e}")
                raise

        logger.info(
            f"Account {account_id} applied to study {study_id} "
            f"({study.apply_count}/{study.size})"
        )
        return study_id

    async def cancel(self, account: Account, study_id: int) -> int:
        """Withdraw ``account`` from the study and return the study id."""
        account_id = account.id
        async with self.locks.hold(study_id=study_id, account_id=account_id):
            try:
                study = await self.studies.find_by_id(study_id, for_update=True)
                account = await self.accounts.find_by_id(account_id, for_update=True)

                if not study.has_member(account):
                    raise NotEnrolledBefore()

                study.remove_member(account)
                if account.current_study_id == study.id:
                    account.current_study_id = None

                await self.db.commit()
            except StudyError as e:
                await self.db.rollback()
                logger.info(f"Cancel of account {account_id} in study {study_id} rejected: {e.code}")
                raise
            except Exception as e:
                await self.db.rollback()
                logger.error(f"Error cancelling account {account_id} in study {study_id}: {e}")
                raise

        logger.info(
            f"Account {account_id} left study {study_id} "
            f"({study.apply_count}/{study.size})"
        )
        return study_id
