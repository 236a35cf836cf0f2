from __future__ import annotations
"""SQLAlchemy models for creator payout batches and their line items."""
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import Integer, BigInteger, String, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .submissions import Submission
from sqlalchemy.sql import func
from reelpay.database import Base
from .enums import PayoutStatus

class Payout(Base):
    __tablename__ = "payouts"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    creator_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount_paise: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[PayoutStatus] = mapped_column(Enum(PayoutStatus), default=PayoutStatus.PENDING, index=True)
    # External payment reference, set on settlement
    reference_id: Mapped[str | None] = mapped_column(String, nullable=True)
    created_by_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    items: Mapped[list["PayoutItem"]] = relationship(
        "PayoutItem", back_populates="payout", order_by="PayoutItem.id"
    )


class PayoutItem(Base):
    __tablename__ = "payout_items"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    payout_id: Mapped[int] = mapped_column(Integer, ForeignKey("payouts.id"), nullable=False, index=True)
    submission_id: Mapped[int] = mapped_column(Integer, ForeignKey("submissions.id"), nullable=False, index=True)
    amount_paise: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # Mirrors submission_id while the payout is PENDING, cleared on settlement
    open_submission_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("submissions.id"), nullable=True, unique=True
    )

    payout: Mapped["Payout"] = relationship("Payout", back_populates="items")
    submission: Mapped["Submission"] = relationship("Submission", foreign_keys="PayoutItem.submission_id")
