"""Request and response models for studies."""

from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, Field

from bookclub.models import Day, StudyState, Zone


class StudyCreate(BaseModel):
    """Study creation model.

    Times stay as ``HH:MM`` strings here; parsing them is part of study
    validation so that malformed times surface as a domain error.
    """

    name: str = Field(min_length=1, max_length=200)
    book_name: str = Field(min_length=1, max_length=300)
    book_image: Optional[str] = None
    description: Optional[str] = None
    contact: Optional[str] = None
    size: int = Field(ge=0)
    start_date: date
    end_date: date
    start_time: str
    end_time: str
    day: Day
    zone: Zone


class StudyUpdate(BaseModel):
    """Study update model. The book is fixed once the study exists."""

    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    contact: Optional[str] = None
    size: int = Field(ge=0)
    start_date: date
    end_date: date
    start_time: str
    end_time: str
    day: Day
    zone: Zone


class StudyResponse(BaseModel):
    """Study response model."""

    id: int
    name: str
    book_name: str
    book_image: Optional[str] = None
    email: str
    description: Optional[str] = None
    contact: Optional[str] = None
    size: int
    apply_count: int
    start_date: date
    end_date: date
    start_time: time
    end_time: time
    day: Day
    zone: Zone
    state: StudyState
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StudyMemberInfo(BaseModel):
    """Public view of a study member."""

    name: str
    email: str
    nickname: Optional[str] = None

    class Config:
        from_attributes = True


class StudyDetailResponse(StudyResponse):
    """Study with its members and the caller's relation to it."""

    members: List[StudyMemberInfo] = []
    is_manager: bool = False
    is_applier: bool = False
    already_started: bool = False
    open_for_application: bool = False


class StudyCountResponse(BaseModel):
    """Study counts, independent of pagination."""

    total: int
    open: int
    close: int
    end: int


class StudyPageResponse(BaseModel):
    """One page of studies."""

    items: List[StudyResponse]
    total: int
    page: int
    size: int


class StudyIdResponse(BaseModel):
    """Result of apply/cancel."""

    id: int
