"""Database models for the book club study system."""

from bookclub.models.account import Account
from bookclub.models.study import Day, Study, StudyState, Zone
from bookclub.models.study_member import StudyMember

__all__ = [
    "Account",
    "Study",
    "StudyState",
    "StudyMember",
    "Day",
    "Zone",
]
