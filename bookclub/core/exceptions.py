"""Domain errors raised by the study services.

Every error is a synchronous, locally detected rejection. Services raise them
before touching any entity, so catching one means nothing was changed.
"""

from typing import Any, Optional


class StudyError(Exception):
    """Base class for all study domain errors."""

    code: str = "STUDY_ERROR"
    status_code: int = 400
    message: str = "Study operation failed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)

    @property
    def detail(self) -> str:
        return str(self)


# --- Not found -----------------------------------------------------------

class NotFoundError(StudyError):
    """Entity lookup failed."""

    code = "NOT_FOUND"
    status_code = 404
    entity = "entity"

    def __init__(self, entity_id: Any, entity: Optional[str] = None):
        self.entity = entity or self.entity
        self.entity_id = entity_id
        super().__init__(f"{self.entity} not found: {entity_id}")


class StudyNotFound(NotFoundError):
    code = "STUDY_NOT_FOUND"
    entity = "study"


class AccountNotFound(NotFoundError):
    code = "ACCOUNT_NOT_FOUND"
    entity = "account"


# --- Validation ----------------------------------------------------------

class StudyValidationError(StudyError):
    """Creation or update input rejected."""

    code = "VALIDATION"
    status_code = 400


class StartDateInPast(StudyValidationError):
    code = "START_DATE_IN_PAST"
    message = "Start date must be later than today"


class DateRangeInvalid(StudyValidationError):
    code = "DATE_RANGE_INVALID"
    message = "Start date must not be after end date"


class TimeParseError(StudyValidationError):
    code = "TIME_PARSE_ERROR"
    message = "Time must be given as HH:MM"


class TimeRangeInvalid(StudyValidationError):
    code = "TIME_RANGE_INVALID"
    message = "Start time must not be after end time"


# --- Authorization -------------------------------------------------------

class AuthorizationError(StudyError):
    code = "FORBIDDEN"
    status_code = 403


class NotManager(AuthorizationError):
    code = "NOT_MANAGER"
    message = "Only the study admin may modify this study"


# --- Capacity ------------------------------------------------------------

class CapacityError(StudyError):
    code = "CAPACITY"
    status_code = 409


class StudyFull(CapacityError):
    code = "STUDY_FULL"
    message = "Study is already full"


class CapacityBelowEnrolled(CapacityError):
    code = "CAPACITY_BELOW_ENROLLED"
    message = "Study size cannot be smaller than the number of applied members"


# --- State conflicts -----------------------------------------------------

class StateConflictError(StudyError):
    code = "STATE_CONFLICT"
    status_code = 409


class AlreadyEnrolled(StateConflictError):
    code = "ALREADY_ENROLLED"
    message = "Account already belongs to a study"


class NotEnrolled(StateConflictError):
    code = "NOT_ENROLLED"
    message = "Account is not a member of this study"


class NotEnrolledBefore(NotEnrolled):
    code = "NOT_ENROLLED_BEFORE"
    message = "Account has not applied to this study"


class AlreadyHasActiveStudy(StateConflictError):
    code = "ALREADY_HAS_ACTIVE_STUDY"
    message = "Account already has an open or closed study"


class StudyNotOpen(StateConflictError):
    code = "STUDY_NOT_OPEN"
    message = "Study is no longer accepting applications"


class StudyNotEditable(StateConflictError):
    code = "STUDY_NOT_EDITABLE"
    message = "Study can only be edited while it is open"
