"""Tests for study creation/update validation."""

from datetime import time, timedelta

import pytest

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
from bookclub.services.validation import (
    ensure_capacity_fits,
    ensure_editable,
    ensure_manager,
    ensure_no_active_study,
    parse_time,
    validate_create_or_update,
)

from conftest import TODAY, study_input


class TestDates:

    def test_start_tomorrow_is_accepted(self):
        data = study_input(start_date=TODAY + timedelta(days=1))
        assert validate_create_or_update(data, TODAY) == (time(13, 0), time(15, 30))

    def test_start_today_is_rejected(self):
        with pytest.raises(StartDateInPast):
            validate_create_or_update(study_input(start_date=TODAY), TODAY)

    def test_start_yesterday_is_rejected(self):
        data = study_input(start_date=TODAY - timedelta(days=1))
        with pytest.raises(StartDateInPast):
            validate_create_or_update(data, TODAY)

    def test_start_after_end_is_rejected(self):
        data = study_input(
            start_date=TODAY + timedelta(days=5),
            end_date=TODAY + timedelta(days=4),
        )
        with pytest.raises(DateRangeInvalid):
            validate_create_or_update(data, TODAY)

    def test_same_start_and_end_date_is_accepted(self):
        day = TODAY + timedelta(days=2)
        validate_create_or_update(study_input(start_date=day, end_date=day), TODAY)


class TestTimes:

    def test_equal_times_are_accepted(self):
        data = study_input(start_time="14:00", end_time="14:00")
        assert validate_create_or_update(data, TODAY) == (time(14, 0), time(14, 0))

    def test_start_after_end_is_rejected(self):
        data = study_input(start_time="15:31", end_time="15:30")
        with pytest.raises(TimeRangeInvalid):
            validate_create_or_update(data, TODAY)

    @pytest.mark.parametrize("value", ["", "1300", "25:00", "13:60", "noon", "13:00:00"])
    def test_unparsable_time_is_rejected(self, value):
        with pytest.raises(TimeParseError):
            validate_create_or_update(study_input(start_time=value), TODAY)

    def test_parse_time_strips_whitespace(self):
        assert parse_time(" 09:05 ") == time(9, 5)


class TestCheckOrder:
    """The first failing check wins."""

    def test_past_start_reported_before_date_range(self):
        data = study_input(start_date=TODAY, end_date=TODAY - timedelta(days=3))
        with pytest.raises(StartDateInPast):
            validate_create_or_update(data, TODAY)

    def test_date_range_reported_before_time_parse(self):
        data = study_input(
            start_date=TODAY + timedelta(days=5),
            end_date=TODAY + timedelta(days=1),
            start_time="bad",
        )
        with pytest.raises(DateRangeInvalid):
            validate_create_or_update(data, TODAY)

    def test_time_parse_reported_before_time_range(self):
        data = study_input(start_time="23:00", end_time="oops")
        with pytest.raises(TimeParseError):
            validate_create_or_update(data, TODAY)


def make_study(state: StudyState = StudyState.OPEN, admin_id: int = 1, apply_count: int = 0) -> Study:
    return Study(admin_id=admin_id, state=state, size=5, apply_count=apply_count, members=[])


class TestGuards:

    def test_account_without_study_may_create(self):
        ensure_no_active_study(Account(id=1, current_study_id=None), None)

    @pytest.mark.parametrize("state", [StudyState.OPEN, StudyState.CLOSE])
    def test_account_with_active_study_may_not_create(self, state):
        with pytest.raises(AlreadyHasActiveStudy):
            ensure_no_active_study(Account(id=1, current_study_id=7), state)

    def test_account_with_ended_study_may_create(self):
        ensure_no_active_study(Account(id=1, current_study_id=7), StudyState.END)

    def test_manager_check(self):
        study = make_study(admin_id=1)
        ensure_manager(study, Account(id=1))
        with pytest.raises(NotManager):
            ensure_manager(study, Account(id=2))

    def test_closed_study_is_not_editable_by_default(self):
        with pytest.raises(StudyNotEditable):
            ensure_editable(make_study(state=StudyState.CLOSE), allow_after_open=False)

    def test_closed_study_editable_when_allowed(self):
        ensure_editable(make_study(state=StudyState.END), allow_after_open=True)

    def test_capacity_cannot_drop_below_applied(self):
        study = make_study(apply_count=3)
        ensure_capacity_fits(study, 3)
        with pytest.raises(CapacityBelowEnrolled):
            ensure_capacity_fits(study, 2)
