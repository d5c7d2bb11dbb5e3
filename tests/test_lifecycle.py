"""Tests for the study state machine."""

from datetime import date, timedelta

import pytest

from bookclub.models import Study, StudyState
from bookclub.services.lifecycle import advance, next_state

START = date(2026, 3, 10)
END = date(2026, 3, 20)


def make_study(state: StudyState) -> Study:
    return Study(state=state, start_date=START, end_date=END, size=5, apply_count=0)


class TestNextState:

    def test_open_closes_on_start_date(self):
        assert next_state(StudyState.OPEN, START, END, START) == StudyState.CLOSE

    @pytest.mark.parametrize("offset", [-3, -1, 1, 5])
    def test_open_stays_open_on_other_days(self, offset):
        today = START + timedelta(days=offset)
        assert next_state(StudyState.OPEN, START, END, today) == StudyState.OPEN

    def test_close_ends_after_end_date(self):
        assert next_state(StudyState.CLOSE, START, END, END + timedelta(days=1)) == StudyState.END

    def test_close_stays_close_on_end_date(self):
        assert next_state(StudyState.CLOSE, START, END, END) == StudyState.CLOSE

    def test_end_is_terminal(self):
        for today in (START, END, END + timedelta(days=30)):
            assert next_state(StudyState.END, START, END, today) == StudyState.END

    def test_open_never_skips_to_end(self):
        assert next_state(StudyState.OPEN, START, END, END + timedelta(days=1)) == StudyState.OPEN


class TestAdvance:

    def test_advance_reports_change(self):
        study = make_study(StudyState.OPEN)

        assert advance(study, START) is True
        assert study.state == StudyState.CLOSE

    def test_advance_is_idempotent(self):
        study = make_study(StudyState.OPEN)
        advance(study, START)

        assert advance(study, START) is False
        assert study.state == StudyState.CLOSE

    def test_full_life_cycle(self):
        study = make_study(StudyState.OPEN)
        states = []

        today = START - timedelta(days=2)
        while today <= END + timedelta(days=3):
            advance(study, today)
            states.append(study.state)
            today += timedelta(days=1)

        # Never regresses
        order = [StudyState.OPEN, StudyState.CLOSE, StudyState.END]
        indexes = [order.index(state) for state in states]
        assert indexes == sorted(indexes)
        assert states[-1] == StudyState.END
