"""Checks that gate study creation and update.

All functions here are pure: they read their arguments and either return or
raise a ``StudyError``. Callers run them before mutating anything.
"""

from datetime import date, datetime, time
from typing import Optional, Tuple

from bookclub.core.exceptions import (
    AlreadyHasActiveStudy,
    CapacityBelowEnrolled,
    DateRangeInvalid,
    NotManager,
    StartDateInPast,
    StudyNotEditable,
    TimeParseError,
    TimeRangeInvalid,
)
from bookclub.models import Account, Study, StudyState

TIME_FORMAT = "%H:%M"

ACTIVE_STATES = (StudyState.OPEN, StudyState.CLOSE)


def parse_time(value: str) -> time:
    """Parse a ``HH:MM`` string."""
    try:
        return datetime.strptime(value.strip(), TIME_FORMAT).time()
    except (AttributeError, ValueError) as e:
        raise TimeParseError(f"Invalid time {value!r}, expected HH:MM") from e


def validate_create_or_update(data, today: date) -> Tuple[time, time]:
    """Run the date and time checks in order and return the parsed times.

    1. start date today or earlier -> StartDateInPast
    2. start date after end date   -> DateRangeInvalid
    3. unparsable start/end time   -> TimeParseError
    4. start time after end time   -> TimeRangeInvalid (equal is fine)
    """
    if data.start_date <= today:
        raise StartDateInPast()

    if data.start_date > data.end_date:
        raise DateRangeInvalid()

    start_time = parse_time(data.start_time)
    end_time = parse_time(data.end_time)

    if start_time > end_time:
        raise TimeRangeInvalid()

    return start_time, end_time


def ensure_no_active_study(account: Account, current_state: Optional[StudyState]) -> None:
    """Creation guard: the account must not already hold an OPEN/CLOSE study."""
    if account.current_study_id is not None and current_state in ACTIVE_STATES:
        raise AlreadyHasActiveStudy()


def ensure_manager(study: Study, account: Account) -> None:
    if not study.is_managed_by(account):
        raise NotManager()


def ensure_editable(study: Study, allow_after_open: bool) -> None:
    if study.state != StudyState.OPEN and not allow_after_open:
        raise StudyNotEditable()


def ensure_capacity_fits(study: Study, size: int) -> None:
    if size < study.apply_count:
        raise CapacityBelowEnrolled()
