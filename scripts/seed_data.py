"""Seed database with sample accounts and studies."""

import asyncio
import sys
from datetime import timedelta

sys.path.append(".")

from bookclub.core.database import AsyncSessionLocal, init_db
from bookclub.core.security import create_access_token
from bookclub.models import Account, Day, Zone
from bookclub.schemas import StudyCreate
from bookclub.services.enrollment_service import EnrollmentService
from bookclub.services.study_service import StudyService
from bookclub.utils.clock import system_clock


async def seed_data():
    """Seed database with sample data."""
    await init_db()
    today = system_clock.today()

    async with AsyncSessionLocal() as db:
        # Create accounts
        accounts = [
            Account(name="Kim Minji", email="minji@bookclub.local", nickname="minji"),
            Account(name="Lee Junho", email="junho@bookclub.local", nickname="junho"),
            Account(name="Park Seoyeon", email="seoyeon@bookclub.local", nickname="seoyeon"),
            Account(name="Choi Yuna", email="yuna@bookclub.local", nickname="yuna"),
        ]

        for account in accounts:
            db.add(account)

        await db.commit()

        # Create studies through the service so validation applies
        study_service = StudyService(db)
        studies = [
            await study_service.create_study(
                "minji@bookclub.local",
                StudyCreate(
                    name="Morning Kafka circle",
                    book_name="The Trial",
                    description="Two chapters a week",
                    contact="open.kakao.com/minji",
                    size=5,
                    start_date=today + timedelta(days=1),
                    end_date=today + timedelta(days=28),
                    start_time="07:00",
                    end_time="08:30",
                    day=Day.TUESDAY,
                    zone=Zone.SEOUL,
                ),
            ),
            await study_service.create_study(
                "junho@bookclub.local",
                StudyCreate(
                    name="Clean Code weekend",
                    book_name="Clean Code",
                    description="Refactoring exercises after each chapter",
                    contact="junho@bookclub.local",
                    size=3,
                    start_date=today + timedelta(days=7),
                    end_date=today + timedelta(days=35),
                    start_time="13:00",
                    end_time="15:30",
                    day=Day.SATURDAY,
                    zone=Zone.BUSAN,
                ),
            ),
        ]

        # Enroll members
        enrollment_service = EnrollmentService(db)
        await enrollment_service.apply(accounts[2], studies[0].id)
        await enrollment_service.apply(accounts[3], studies[1].id)

        print("✅ Sample data seeded successfully!")
        print(f"Created:")
        print(f"  - {len(accounts)} accounts")
        print(f"  - {len(studies)} studies")
        print("Bearer tokens:")
        for account in accounts:
            print(f"  {account.email}: {create_access_token({'sub': account.email})}")


if __name__ == "__main__":
    asyncio.run(seed_data())
