"""Study and account persistence on top of an ``AsyncSession``."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bookclub.core.exceptions import AccountNotFound, StudyNotFound
from bookclub.models import Account, Study, StudyMember, StudyState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StudyFilter:
    """Filters for study listings.

    Every filter that is set narrows the result (logical AND). ``limit=None``
    means no pagination.
    """

    state: Optional[StudyState] = None
    keyword: Optional[str] = None
    book_title: Optional[str] = None
    offset: int = 0
    limit: Optional[int] = None

    def clauses(self) -> list:
        clauses = []
        if self.state is not None:
            clauses.append(Study.state == self.state)
        if self.keyword:
            clauses.append(
                or_(
                    Study.name.icontains(self.keyword, autoescape=True),
                    Study.book_name.icontains(self.keyword, autoescape=True),
                )
            )
        if self.book_title:
            clauses.append(Study.book_name == self.book_title)
        return clauses


class StudyRepository:
    """Loads and stores studies. Lookups by id raise ``StudyNotFound``."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, study_id: int, for_update: bool = False) -> Study:
        query = (
            select(Study)
            .options(selectinload(Study.members))
            .where(Study.id == study_id)
        )
        if for_update:
            # Re-read under a row lock even if the study is already in the session
            query = query.with_for_update().execution_options(populate_existing=True)

        result = await self.db.execute(query)
        study = result.scalar_one_or_none()
        if study is None:
            raise StudyNotFound(study_id)
        return study

    async def find_optional(self, study_id: int) -> Optional[Study]:
        result = await self.db.execute(select(Study).where(Study.id == study_id))
        return result.scalar_one_or_none()

    async def find(self, study_filter: StudyFilter) -> List[Study]:
        query = (
            select(Study)
            .where(*study_filter.clauses())
            .order_by(Study.id.desc())
        )
        if study_filter.limit is not None:
            query = query.offset(study_filter.offset).limit(study_filter.limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def find_all(self) -> List[Study]:
        return await self.find(StudyFilter())

    async def find_by_state(self, state: StudyState) -> List[Study]:
        return await self.find(StudyFilter(state=state))

    async def find_by_name_containing(self, keyword: str) -> List[Study]:
        return await self.find(StudyFilter(keyword=keyword))

    async def find_ids_by_state(self, state: StudyState) -> List[int]:
        result = await self.db.execute(
            select(Study.id).where(Study.state == state).order_by(Study.id)
        )
        return [row[0] for row in result.all()]

    async def count(self, study_filter: StudyFilter) -> int:
        result = await self.db.execute(
            select(func.count(Study.id)).where(*study_filter.clauses())
        )
        return result.scalar_one()

    async def count_by_state(self) -> Dict[StudyState, int]:
        result = await self.db.execute(
            select(Study.state, func.count(Study.id)).group_by(Study.state)
        )
        counts = {state: 0 for state in StudyState}
        for state, count in result.all():
            counts[StudyState(state)] = count
        return counts

    async def find_members(self, study_id: int) -> List[Account]:
        result = await self.db.execute(
            select(Account)
            .join(StudyMember, StudyMember.account_id == Account.id)
            .where(StudyMember.study_id == study_id)
            .order_by(StudyMember.id)
        )
        return list(result.scalars().all())

    async def save(self, study: Study) -> Study:
        self.db.add(study)
        await self.db.flush()  # Flush to get the ID
        return study

    async def delete(self, study: Study) -> None:
        await self.db.delete(study)
        await self.db.flush()


class AccountRepository:
    """Read access to accounts plus the ``current_study_id`` pointer."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_email(self, email: str, for_update: bool = False) -> Account:
        query = select(Account).where(Account.email == email)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)

        result = await self.db.execute(query)
        account = result.scalar_one_or_none()
        if account is None:
            raise AccountNotFound(email)
        return account

    async def find_by_id(self, account_id: int, for_update: bool = False) -> Account:
        query = select(Account).where(Account.id == account_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)

        result = await self.db.execute(query)
        account = result.scalar_one_or_none()
        if account is None:
            raise AccountNotFound(account_id)
        return account

    async def clear_current_study(self, study_id: int) -> int:
        """Detach every account that points at ``study_id``."""
        result = await self.db.execute(
            update(Account)
            .where(Account.current_study_id == study_id)
            .values(current_study_id=None)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount
