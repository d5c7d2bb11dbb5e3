"""Studies API endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Query, status

from bookclub.api.dependencies import CurrentAccount, CurrentClock, DbSession, Locks
from bookclub.core.settings import settings
from bookclub.models import Study, StudyState
from bookclub.schemas import (
    StudyCountResponse,
    StudyCreate,
    StudyDetailResponse,
    StudyIdResponse,
    StudyMemberInfo,
    StudyPageResponse,
    StudyResponse,
    StudyUpdate,
)
from bookclub.services.enrollment_service import EnrollmentService
from bookclub.services.query_service import StudyQueryService
from bookclub.services.repository import StudyFilter
from bookclub.services.study_service import StudyService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/studies", tags=["studies"])


@router.get("", response_model=StudyPageResponse)
async def list_studies(
    db: DbSession,
    state: Optional[StudyState] = Query(None, description="Only studies in this state"),
    keyword: Optional[str] = Query(None, description="Substring of study or book name"),
    title: Optional[str] = Query(None, description="Exact book name"),
    page: int = Query(1, ge=1),
    size: Optional[int] = Query(None, ge=1),
) -> StudyPageResponse:
    """List studies, newest first."""
    size = min(size or settings.default_page_size, settings.max_page_size)
    study_filter = StudyFilter(
        state=state,
        keyword=keyword,
        book_title=title,
        offset=(page - 1) * size,
        limit=size,
    )
    result = await StudyQueryService(db).page(study_filter)
    return StudyPageResponse(
        items=[StudyResponse.model_validate(study) for study in result.items],
        total=result.total,
        page=page,
        size=size,
    )


@router.get("/count", response_model=StudyCountResponse)
async def count_studies(db: DbSession) -> StudyCountResponse:
    """Total and per-state study counts."""
    summary = await StudyQueryService(db).count_summary()
    return StudyCountResponse(**summary)


@router.get("/{study_id}", response_model=StudyDetailResponse)
async def get_study(
    study_id: int,
    db: DbSession,
    account: CurrentAccount,
    clock: CurrentClock,
) -> StudyDetailResponse:
    """Get study with its members."""
    info = await StudyQueryService(db).get_study_info(study_id)
    study = info.study
    return StudyDetailResponse(
        **StudyResponse.model_validate(study).model_dump(),
        members=[StudyMemberInfo.model_validate(member) for member in info.members],
        is_manager=study.is_managed_by(account),
        is_applier=study.has_member(account),
        already_started=study.is_already_started(clock.today()),
        open_for_application=study.is_open_for_application(),
    )


@router.get("/{study_id}/members", response_model=List[StudyMemberInfo])
async def get_study_members(
    study_id: int,
    db: DbSession,
    account: CurrentAccount,
) -> List[StudyMemberInfo]:
    """Get members of a study."""
    info = await StudyQueryService(db).get_study_info(study_id)
    return [StudyMemberInfo.model_validate(member) for member in info.members]


@router.post("", response_model=StudyResponse, status_code=status.HTTP_201_CREATED)
async def create_study(
    study_data: StudyCreate,
    db: DbSession,
    account: CurrentAccount,
    clock: CurrentClock,
    locks: Locks,
) -> Study:
    """Create new study managed by the caller."""
    return await StudyService(db, clock=clock, locks=locks).create_study(
        account.email, study_data
    )


@router.patch("/{study_id}", response_model=StudyResponse)
async def update_study(
    study_id: int,
    study_data: StudyUpdate,
    db: DbSession,
    account: CurrentAccount,
    clock: CurrentClock,
    locks: Locks,
) -> Study:
    """Update study."""
    return await StudyService(db, clock=clock, locks=locks).update_study(
        account.email, study_id, study_data
    )


@router.delete("/{study_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_study(
    study_id: int,
    db: DbSession,
    account: CurrentAccount,
    clock: CurrentClock,
    locks: Locks,
) -> None:
    """Delete study and release its members."""
    await StudyService(db, clock=clock, locks=locks).delete_study(account.email, study_id)


@router.post("/{study_id}/apply", response_model=StudyIdResponse)
async def apply_study(
    study_id: int,
    db: DbSession,
    account: CurrentAccount,
    locks: Locks,
) -> StudyIdResponse:
    """Apply the caller to a study."""
    applied_id = await EnrollmentService(db, locks=locks).apply(account, study_id)
    return StudyIdResponse(id=applied_id)


@router.post("/{study_id}/cancel", response_model=StudyIdResponse)
async def cancel_study(
    study_id: int,
    db: DbSession,
    account: CurrentAccount,
    locks: Locks,
) -> StudyIdResponse:
    """Withdraw the caller from a study."""
    cancelled_id = await EnrollmentService(db, locks=locks).cancel(account, study_id)
    return StudyIdResponse(id=cancelled_id)
