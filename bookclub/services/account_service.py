"""Account lookups for the study services."""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from bookclub.models import Account, StudyState
from bookclub.services.repository import AccountRepository, StudyRepository

logger = logging.getLogger(__name__)


class AccountService:
    """Identity provider as seen by the study core."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.accounts = AccountRepository(db)
        self.studies = StudyRepository(db)

    async def get_by_email(self, email: str, for_update: bool = False) -> Account:
        """Return the account for ``email``; raises AccountNotFound."""
        return await self.accounts.find_by_email(email, for_update=for_update)

    async def current_study_state(self, account: Account) -> Optional[StudyState]:
        """State of the study the account currently points at, if any."""
        if account.current_study_id is None:
            return None
        study = await self.studies.find_optional(account.current_study_id)
        if study is None:
            logger.warning(
                f"Account {account.id} points at missing study {account.current_study_id}"
            )
            return None
        return study.state
