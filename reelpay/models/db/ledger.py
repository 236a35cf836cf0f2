from __future__ import annotations
"""SQLAlchemy model for the append-only ledger of monetary movements."""
from datetime import datetime
from sqlalchemy import Integer, BigInteger, String, DateTime, ForeignKey, Enum, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from reelpay.database import Base
from .enums import LedgerEntryType

class LedgerEntry(Base):
    __tablename__ = "ledger_entries"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    type: Mapped[LedgerEntryType] = mapped_column(Enum(LedgerEntryType), nullable=False, index=True)
    # Magnitude only; type gives the direction.
    amount_paise: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # Unique: a repeated webhook delivery collides here and is treated as already applied.
    idempotency_key: Mapped[str | None] = mapped_column(String, unique=True, nullable=True)

    campaign_id: Mapped[int] = mapped_column(Integer, ForeignKey("campaigns.id"), nullable=False, index=True)
    submission_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("submissions.id"), nullable=True, index=True)
    payout_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("payouts.id"), nullable=True, index=True)
    created_by_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("amount_paise > 0", name="ledger_amount_positive"),
    )
