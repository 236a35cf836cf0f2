from __future__ import annotations
"""SQLAlchemy model for content submitted by creators and its payable view state."""
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import Integer, BigInteger, String, DateTime, ForeignKey, Enum, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .campaigns import Campaign
    from .users import User
    from .verification import VerificationCheck, VerificationRequest
from sqlalchemy.sql import func
from reelpay.database import Base
from .enums import Platform, SubmissionStatus, SubmissionPayoutStatus

class Submission(Base):
    __tablename__ = "submissions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    campaign_id: Mapped[int] = mapped_column(Integer, ForeignKey("campaigns.id"), nullable=False, index=True)
    creator_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    participation_id: Mapped[int] = mapped_column(Integer, ForeignKey("participations.id"), nullable=False)

    platform: Mapped[Platform] = mapped_column(Enum(Platform), nullable=False)
    handle: Mapped[str] = mapped_column(String, nullable=False)
    reel_url: Mapped[str] = mapped_column(String, nullable=False)

    status: Mapped[SubmissionStatus] = mapped_column(
        Enum(SubmissionStatus), default=SubmissionStatus.PENDING_HOST_APPROVAL, index=True
    )
    paid_views_total: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    last_verified_views_total: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    last_verified_cycle_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Share of the campaign reservation currently held for this submission.
    reserved_paise: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    payout_status: Mapped[SubmissionPayoutStatus] = mapped_column(
        Enum(SubmissionPayoutStatus), default=SubmissionPayoutStatus.UNPAID, index=True
    )
    eligible_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    campaign: Mapped["Campaign"] = relationship("Campaign", back_populates="submissions")
    creator: Mapped["User"] = relationship("User", back_populates="submissions")
    verification_checks: Mapped[list["VerificationCheck"]] = relationship(
        "VerificationCheck", back_populates="submission", order_by="VerificationCheck.id"
    )
    verification_requests: Mapped[list["VerificationRequest"]] = relationship(
        "VerificationRequest", back_populates="submission"
    )

    __table_args__ = (
        UniqueConstraint('campaign_id', 'creator_id', 'reel_url', name='unique_reel_per_creator_campaign'),
        CheckConstraint("paid_views_total >= 0", name="submission_paid_views_non_negative"),
        CheckConstraint("paid_views_total <= last_verified_views_total", name="submission_paid_within_verified"),
        CheckConstraint("reserved_paise >= 0", name="submission_reserved_non_negative"),
    )
