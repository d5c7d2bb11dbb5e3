"""Study model."""

from datetime import date, datetime, time
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Date, DateTime, Enum as SQLEnum, ForeignKey, Integer, String, Text, Time, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookclub.core.database import Base
from bookclub.core.exceptions import NotEnrolled, StudyFull
from bookclub.models.study_member import StudyMember

if TYPE_CHECKING:
    from bookclub.models.account import Account


class StudyState(str, Enum):
    """Study life-cycle state. Only ever advances OPEN -> CLOSE -> END."""

    OPEN = "OPEN"
    CLOSE = "CLOSE"
    END = "END"


class Day(str, Enum):
    """Day of the week the study meets."""

    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"


class Zone(str, Enum):
    """Region where the study meets."""

    SEOUL = "SEOUL"
    BUSAN = "BUSAN"
    INCHEON = "INCHEON"
    DAEGU = "DAEGU"
    DAEJEON = "DAEJEON"
    GWANGJU = "GWANGJU"
    ULSAN = "ULSAN"
    SEJONG = "SEJONG"
    GYEONGGI = "GYEONGGI"
    JEJU = "JEJU"


class Study(Base):
    """A time-boxed, capacity-limited reading group with one admin."""

    __tablename__ = "studies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    book_name: Mapped[str] = mapped_column(String(300), nullable=False, index=True)
    book_image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Admin identity
    admin_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False)
    email: Mapped[str] = mapped_column(String(200), nullable=False)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contact: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    size: Mapped[int] = mapped_column(Integer, nullable=False)  # capacity
    apply_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    day: Mapped[Day] = mapped_column(SQLEnum(Day), nullable=False)
    zone: Mapped[Zone] = mapped_column(SQLEnum(Zone), nullable=False)
    state: Mapped[StudyState] = mapped_column(
        SQLEnum(StudyState), default=StudyState.OPEN, nullable=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    members: Mapped[list[StudyMember]] = relationship(
        StudyMember,
        back_populates="study",
        cascade="all, delete-orphan",
        order_by=StudyMember.id,
        lazy="selectin",
    )

    __mapper_args__ = {"eager_defaults": True}

    def __repr__(self) -> str:
        return (
            f"<Study(id={self.id}, name='{self.name}', state={self.state}, "
            f"applied={self.apply_count}/{self.size})>"
        )

    @classmethod
    def open(cls, data, admin: "Account", start_time: time, end_time: time) -> "Study":
        """Build a new OPEN study from validated input; ``admin`` becomes its manager."""
        return cls(
            name=data.name,
            book_name=data.book_name,
            book_image=data.book_image,
            admin_id=admin.id,
            email=admin.email,
            description=data.description,
            contact=data.contact,
            size=data.size,
            apply_count=0,
            start_date=data.start_date,
            end_date=data.end_date,
            start_time=start_time,
            end_time=end_time,
            day=data.day,
            zone=data.zone,
            state=StudyState.OPEN,
            members=[],
        )

    def apply_update(self, data, start_time: time, end_time: time) -> None:
        """Overwrite editable fields with validated input."""
        self.name = data.name
        self.description = data.description
        self.contact = data.contact
        self.size = data.size
        self.start_date = data.start_date
        self.end_date = data.end_date
        self.start_time = start_time
        self.end_time = end_time
        self.day = data.day
        self.zone = data.zone

    def is_full(self) -> bool:
        return self.apply_count >= self.size

    def is_managed_by(self, account: "Account") -> bool:
        return account is not None and self.admin_id == account.id

    def has_member(self, account: "Account") -> bool:
        return any(member.account_id == account.id for member in self.members)

    def is_already_started(self, today: date) -> bool:
        """True once ``today`` reaches the start date. Does not change state."""
        return today >= self.start_date

    def is_open_for_application(self) -> bool:
        return self.state == StudyState.OPEN and not self.is_full()

    def add_member(self, account: "Account") -> None:
        """Enroll ``account``. Raises StudyFull when capacity is reached."""
        if self.is_full():
            raise StudyFull()
        self.members.append(StudyMember(account_id=account.id))
        self.apply_count += 1

    def remove_member(self, account: "Account") -> None:
        """Drop ``account`` from the members. Raises NotEnrolled if absent."""
        for member in self.members:
            if member.account_id == account.id:
                self.members.remove(member)
                self.apply_count -= 1
                return
        raise NotEnrolled()
