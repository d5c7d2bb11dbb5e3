"""Read-side queries over studies: filtered listings, counts and details."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from bookclub.models import Account, Study, StudyState
from bookclub.services.repository import StudyFilter, StudyRepository


@dataclass
class StudyPage:
    items: List[Study]
    total: int
    offset: int
    limit: Optional[int]


@dataclass
class StudyInfo:
    """A study with its members, as shown on the detail page."""

    study: Study
    members: List[Account] = field(default_factory=list)


class StudyQueryService:
    """Listing and counting studies. Results are newest first."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.studies = StudyRepository(db)

    async def list_studies(self, study_filter: StudyFilter) -> List[Study]:
        return await self.studies.find(study_filter)

    async def list_by_state(
        self, state: StudyState, offset: int = 0, limit: Optional[int] = None
    ) -> List[Study]:
        return await self.studies.find(StudyFilter(state=state, offset=offset, limit=limit))

    async def search_by_keyword(
        self,
        keyword: str,
        state: Optional[StudyState] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[Study]:
        return await self.studies.find(
            StudyFilter(state=state, keyword=keyword, offset=offset, limit=limit)
        )

    async def page(self, study_filter: StudyFilter) -> StudyPage:
        """One page of matches plus the unpaginated total."""
        items = await self.studies.find(study_filter)
        total = await self.studies.count(study_filter)
        return StudyPage(
            items=items,
            total=total,
            offset=study_filter.offset,
            limit=study_filter.limit,
        )

    async def count_studies(self, study_filter: Optional[StudyFilter] = None) -> int:
        """Number of matching studies; pagination fields are ignored."""
        return await self.studies.count(study_filter or StudyFilter())

    async def count_summary(self) -> Dict[str, int]:
        """Total and per-state study counts."""
        by_state = await self.studies.count_by_state()
        summary = {state.value.lower(): count for state, count in by_state.items()}
        summary["total"] = sum(by_state.values())
        return summary

    async def get_study_info(self, study_id: int) -> StudyInfo:
        study = await self.studies.find_by_id(study_id)
        members = await self.studies.find_members(study_id)
        return StudyInfo(study=study, members=members)
