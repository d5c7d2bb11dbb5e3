"""Study member model."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookclub.core.database import Base

if TYPE_CHECKING:
    from bookclub.models.account import Account
    from bookclub.models.study import Study


class StudyMember(Base):
    """Membership of an account in a study.

    The study owns this set; the account side only keeps the denormalized
    ``Account.current_study_id``.
    """

    __tablename__ = "study_members"
    __table_args__ = (
        UniqueConstraint("study_id", "account_id", name="uq_study_members_study_account"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    study_id: Mapped[int] = mapped_column(
        ForeignKey("studies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    study: Mapped["Study"] = relationship("Study", back_populates="members")
    account: Mapped["Account"] = relationship("Account")

    def __repr__(self) -> str:
        return f"<StudyMember(study_id={self.study_id}, account_id={self.account_id})>"
