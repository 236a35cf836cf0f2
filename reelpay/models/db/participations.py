from __future__ import annotations
"""SQLAlchemy model for a creator's registration (platforms + handles) in a campaign."""
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import Integer, DateTime, ForeignKey, Enum, JSON, UniqueConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .campaigns import Campaign
from sqlalchemy.sql import func
from reelpay.database import Base
from .enums import ParticipationStatus

class Participation(Base):
    __tablename__ = "participations"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    campaign_id: Mapped[int] = mapped_column(Integer, ForeignKey("campaigns.id"), nullable=False)
    creator_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    platforms: Mapped[list] = mapped_column(JSON, default=list)
    # Platform value -> handle, e.g. {"INSTAGRAM": "@maya"}
    handles: Mapped[dict] = mapped_column(JSON, default=dict)
    eligible_until: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[ParticipationStatus] = mapped_column(Enum(ParticipationStatus), default=ParticipationStatus.ACTIVE)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    campaign: Mapped["Campaign"] = relationship("Campaign", back_populates="participations")

    __table_args__ = (
        UniqueConstraint('campaign_id', 'creator_id', name='unique_participation_per_campaign'),
    )
