from __future__ import annotations
"""SQLAlchemy model for the per-campaign budget account (total / reserved / spent)."""
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import Integer, BigInteger, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .campaigns import Campaign
from sqlalchemy.sql import func
from reelpay.database import Base

class CampaignBudgetAccount(Base):
    """Three balances in paise. Only services.budget mutates them, each time
    together with a ledger entry."""

    __tablename__ = "campaign_budget_accounts"
    campaign_id: Mapped[int] = mapped_column(Integer, ForeignKey("campaigns.id"), primary_key=True)
    total_paise: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    reserved_paise: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    spent_paise: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    campaign: Mapped["Campaign"] = relationship("Campaign", back_populates="budget_account")

    __table_args__ = (
        CheckConstraint("total_paise >= 0", name="budget_total_non_negative"),
        CheckConstraint("reserved_paise >= 0", name="budget_reserved_non_negative"),
        CheckConstraint("spent_paise >= 0", name="budget_spent_non_negative"),
        CheckConstraint("reserved_paise + spent_paise <= total_paise", name="budget_never_overcommitted"),
    )

    @property
    def available_paise(self) -> int:
        return self.total_paise - self.reserved_paise - self.spent_paise
