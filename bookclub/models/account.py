"""Account model."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from bookclub.core.database import Base


class Account(Base):
    """Account as seen by the study core.

    Accounts are owned by the identity provider; studies only read them and
    maintain ``current_study_id``.
    """

    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    nickname: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    # Denormalized, no FK: kept in sync with study_members by the services
    current_study_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, email='{self.email}', study={self.current_study_id})>"
