"""
Pydantic schemas for payouts and the campaign ledger.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict
from ..db.enums import PayoutStatus, LedgerEntryType

class PayoutCreate(BaseModel):
    creator_id: int = Field(gt=0)

class PayoutMarkPaid(BaseModel):
    reference_id: str = Field(min_length=1, max_length=200, description="External payment reference")

class PayoutItemRead(BaseModel):
    id: int
    submission_id: int
    amount_paise: int

    model_config = ConfigDict(from_attributes=True)

class PayoutRead(BaseModel):
    id: int
    creator_id: int
    amount_paise: int
    status: PayoutStatus
    reference_id: Optional[str]
    created_at: datetime
    paid_at: Optional[datetime]
    items: List[PayoutItemRead] = []

    model_config = ConfigDict(from_attributes=True)

class LedgerEntryRead(BaseModel):
    id: int
    type: LedgerEntryType
    amount_paise: int
    idempotency_key: Optional[str]
    campaign_id: int
    submission_id: Optional[int]
    payout_id: Optional[int]
    created_by_id: Optional[int]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
