from __future__ import annotations
"""SQLAlchemy models for admin verification checks and creator re-verification requests."""
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import Integer, BigInteger, String, Text, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .submissions import Submission
from sqlalchemy.sql import func
from reelpay.database import Base
from .enums import VerificationRequestStatus

class VerificationCheck(Base):
    """Immutable record of one admin verification. Several per cycle are allowed."""

    __tablename__ = "verification_checks"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    submission_id: Mapped[int] = mapped_column(Integer, ForeignKey("submissions.id"), nullable=False, index=True)
    cycle_index: Mapped[int] = mapped_column(Integer, nullable=False)
    verified_views_total: Mapped[int] = mapped_column(BigInteger, nullable=False)
    admin_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    proof_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    proof_url: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    submission: Mapped["Submission"] = relationship("Submission", back_populates="verification_checks")


class VerificationRequest(Base):
    __tablename__ = "verification_requests"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    submission_id: Mapped[int] = mapped_column(Integer, ForeignKey("submissions.id"), nullable=False)
    cycle_index: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[VerificationRequestStatus] = mapped_column(
        Enum(VerificationRequestStatus), default=VerificationRequestStatus.PENDING
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    submission: Mapped["Submission"] = relationship("Submission", back_populates="verification_requests")

    # One re-verification ticket per submission per cycle
    __table_args__ = (
        UniqueConstraint('submission_id', 'cycle_index', name='unique_request_per_cycle'),
    )
