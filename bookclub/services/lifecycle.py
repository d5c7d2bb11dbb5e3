"""Time-driven study state transitions.

No I/O and no clock access: callers pass ``today`` in, which keeps the rules
testable without any scheduling machinery.
"""

from datetime import date

from bookclub.models import Study, StudyState


def next_state(state: StudyState, start_date: date, end_date: date, today: date) -> StudyState:
    """Return the state a study should be in on ``today``.

    OPEN -> CLOSE only on the start date itself, CLOSE -> END once the end
    date has passed. END is terminal. Every other case is a no-op.
    """
    if state == StudyState.OPEN and today == start_date:
        return StudyState.CLOSE
    if state == StudyState.CLOSE and today > end_date:
        return StudyState.END
    return state


def advance(study: Study, today: date) -> bool:
    """Apply at most one transition to ``study``. Returns True if it changed."""
    new_state = next_state(study.state, study.start_date, study.end_date, today)
    if new_state == study.state:
        return False
    study.state = new_state
    return True
