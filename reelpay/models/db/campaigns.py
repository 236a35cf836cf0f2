from __future__ import annotations
"""SQLAlchemy model for promotional campaigns funded by hosts."""
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, DateTime, Enum, ForeignKey, JSON, CheckConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .budget_accounts import CampaignBudgetAccount
    from .participations import Participation
    from .submissions import Submission
    from .users import User
from sqlalchemy.sql import func
from reelpay.database import Base
from .enums import CampaignStatus

class Campaign(Base):
    __tablename__ = "campaigns"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    host_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    # Platform enum values, e.g. ["YOUTUBE", "INSTAGRAM"]
    platforms: Mapped[list] = mapped_column(JSON, default=list)
    rate_per_1k_views_paise: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[CampaignStatus] = mapped_column(Enum(CampaignStatus), default=CampaignStatus.DRAFT, index=True)

    start_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cycle_hours: Mapped[int] = mapped_column(Integer, default=48)
    submission_eligibility_days: Mapped[int] = mapped_column(Integer, default=30)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    host: Mapped["User"] = relationship("User", back_populates="hosted_campaigns")
    budget_account: Mapped["CampaignBudgetAccount"] = relationship(
        "CampaignBudgetAccount", back_populates="campaign", uselist=False
    )
    participations: Mapped[list["Participation"]] = relationship("Participation", back_populates="campaign")
    submissions: Mapped[list["Submission"]] = relationship("Submission", back_populates="campaign")

    __table_args__ = (
        CheckConstraint("rate_per_1k_views_paise > 0", name="campaign_rate_positive"),
        CheckConstraint("cycle_hours > 0", name="campaign_cycle_hours_positive"),
    )
