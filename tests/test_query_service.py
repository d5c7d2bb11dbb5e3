"""Tests for study listing, search, pagination and counts."""

from datetime import time, timedelta

import pytest

from bookclub.core.exceptions import StudyNotFound
from bookclub.models import Account, Day, Study, StudyState, Zone
from bookclub.services.enrollment_service import EnrollmentService
from bookclub.services.query_service import StudyQueryService
from bookclub.services.repository import StudyFilter, StudyRepository

from conftest import TODAY


def make_study(admin_id: int, name: str, book_name: str, state: StudyState) -> Study:
    return Study(
        name=name,
        book_name=book_name,
        admin_id=admin_id,
        email="admin@bookclub.local",
        size=5,
        apply_count=0,
        start_date=TODAY + timedelta(days=1),
        end_date=TODAY + timedelta(days=7),
        start_time=time(18, 0),
        end_time=time(20, 0),
        day=Day.FRIDAY,
        zone=Zone.SEOUL,
        state=state,
        members=[],
    )


@pytest.fixture
async def catalog(session_factory, accounts):
    """Seven studies in insertion order (ids ascending)."""
    admin_id = accounts["admin"].id
    rows = [
        ("Kafka nights", "The Trial", StudyState.OPEN),
        ("Refactoring club", "Refactoring", StudyState.OPEN),
        ("Trial and error", "Clean Code", StudyState.CLOSE),
        ("Morning pages", "The Trial", StudyState.END),
        ("Python deep dive", "Fluent Python", StudyState.OPEN),
        ("Weekend 100% club", "Clean Architecture", StudyState.CLOSE),
        ("Clean coders", "clean code", StudyState.OPEN),
    ]
    async with session_factory() as session:
        studies = [make_study(admin_id, *row) for row in rows]
        session.add_all(studies)
        await session.commit()
        return studies


def names(studies):
    return [study.name for study in studies]


class TestListing:

    async def test_all_newest_first(self, db, catalog):
        result = await StudyQueryService(db).list_studies(StudyFilter())
        assert names(result) == list(reversed(names(catalog)))

    async def test_by_state(self, db, catalog):
        result = await StudyQueryService(db).list_by_state(StudyState.OPEN)
        assert names(result) == [
            "Clean coders",
            "Python deep dive",
            "Refactoring club",
            "Kafka nights",
        ]

    async def test_keyword_matches_name_or_book(self, db, catalog):
        result = await StudyQueryService(db).search_by_keyword("trial")
        assert names(result) == ["Morning pages", "Trial and error", "Kafka nights"]

    async def test_keyword_is_case_insensitive(self, db, catalog):
        result = await StudyQueryService(db).search_by_keyword("CLEAN CODE")
        assert names(result) == ["Clean coders", "Trial and error"]

    async def test_keyword_and_state_combine(self, db, catalog):
        result = await StudyQueryService(db).search_by_keyword("clean", state=StudyState.CLOSE)
        assert names(result) == ["Weekend 100% club", "Trial and error"]

    async def test_keyword_wildcards_are_literal(self, db, catalog):
        result = await StudyQueryService(db).search_by_keyword("100%")
        assert names(result) == ["Weekend 100% club"]

        assert await StudyQueryService(db).search_by_keyword("%") == result

    async def test_exact_book_title(self, db, catalog):
        result = await StudyQueryService(db).list_studies(
            StudyFilter(state=StudyState.OPEN, book_title="The Trial")
        )
        assert names(result) == ["Kafka nights"]

    async def test_no_match_is_empty(self, db, catalog):
        assert await StudyQueryService(db).search_by_keyword("Tolstoy") == []


class TestPagination:

    async def test_pages_follow_id_descending(self, db, catalog):
        service = StudyQueryService(db)

        first = await service.list_studies(StudyFilter(offset=0, limit=3))
        second = await service.list_studies(StudyFilter(offset=3, limit=3))
        third = await service.list_studies(StudyFilter(offset=6, limit=3))

        ordered = list(reversed(names(catalog)))
        assert names(first) == ordered[:3]
        assert names(second) == ordered[3:6]
        assert names(third) == ordered[6:]

    async def test_page_total_ignores_pagination(self, db, catalog):
        page = await StudyQueryService(db).page(
            StudyFilter(state=StudyState.OPEN, offset=2, limit=1)
        )
        assert names(page.items) == ["Refactoring club"]
        assert page.total == 4

    async def test_paginated_state_listing(self, db, catalog):
        result = await StudyQueryService(db).list_by_state(StudyState.OPEN, offset=1, limit=2)
        assert names(result) == ["Python deep dive", "Refactoring club"]


class TestCounts:

    async def test_count_summary(self, db, catalog):
        summary = await StudyQueryService(db).count_summary()
        assert summary == {"total": 7, "open": 4, "close": 2, "end": 1}

    async def test_count_summary_empty(self, db):
        summary = await StudyQueryService(db).count_summary()
        assert summary == {"total": 0, "open": 0, "close": 0, "end": 0}

    async def test_count_with_keyword(self, db, catalog):
        assert await StudyQueryService(db).count_studies(StudyFilter(keyword="clean")) == 3


class TestRepository:

    async def test_find_by_id_missing_raises(self, db):
        with pytest.raises(StudyNotFound):
            await StudyRepository(db).find_by_id(12345)

    async def test_empty_results_are_not_errors(self, db):
        repo = StudyRepository(db)
        assert await repo.find_all() == []
        assert await repo.find_by_state(StudyState.END) == []
        assert await repo.find_by_name_containing("anything") == []

    async def test_find_by_name_containing(self, db, catalog):
        result = await StudyRepository(db).find_by_name_containing("Python")
        assert names(result) == ["Python deep dive"]


class TestStudyInfo:

    async def test_info_lists_members(self, session_factory, db, locks, catalog, accounts):
        target = catalog[0]
        for nickname in ("alice", "bob"):
            async with session_factory() as session:
                await EnrollmentService(session, locks=locks).apply(accounts[nickname], target.id)

        info = await StudyQueryService(db).get_study_info(target.id)

        assert info.study.id == target.id
        assert [member.email for member in info.members] == [
            "alice@bookclub.local",
            "bob@bookclub.local",
        ]
        assert all(isinstance(member, Account) for member in info.members)

    async def test_info_missing_study(self, db):
        with pytest.raises(StudyNotFound):
            await StudyQueryService(db).get_study_info(404)
