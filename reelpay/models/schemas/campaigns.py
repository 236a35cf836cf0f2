"""
Pydantic schemas for campaigns, their budget and deposits.
"""
from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from ..db.enums import CampaignStatus, ParticipationStatus, Platform
from .base import normalize_platform, normalize_platform_list

class CampaignCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    platforms: List[Platform] = Field(min_length=1)
    rate_per_1k_views_paise: int = Field(ge=3000, le=100000, description="₹30–1000 per 1k views")
    budget_total_paise: int = Field(0, ge=0, description="Seed budget; confirmed by the first deposit")
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    cycle_hours: Optional[int] = Field(None, gt=0, le=24 * 30)
    submission_eligibility_days: Optional[int] = Field(None, gt=0, le=365)

    @field_validator('platforms', mode='before')
    @classmethod
    def validate_platforms(cls, v):
        return normalize_platform_list(v)

    @model_validator(mode='after')
    def validate_window(self):
        if self.start_at and self.end_at and self.end_at <= self.start_at:
            raise ValueError('end_at must be after start_at')
        return self

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "title": "Monsoon Sneaker Drop",
            "platforms": ["instagram", "yt"],
            "rate_per_1k_views_paise": 3000,
            "budget_total_paise": 500000
        }
    })

class BudgetRead(BaseModel):
    total_paise: int
    reserved_paise: int
    spent_paise: int
    available_paise: int

    model_config = ConfigDict(from_attributes=True)

class CampaignRead(BaseModel):
    id: int
    host_id: int
    title: str
    platforms: List[Platform]
    rate_per_1k_views_paise: int
    status: CampaignStatus
    start_at: Optional[datetime]
    end_at: Optional[datetime]
    cycle_hours: int
    submission_eligibility_days: int
    created_at: datetime
    budget: Optional[BudgetRead] = Field(None, validation_alias="budget_account")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

class CycleInfoRead(BaseModel):
    cycle_index: int = Field(ge=0)
    raw_index: int
    next_window_at: datetime

    model_config = ConfigDict(from_attributes=True)

class DepositCreate(BaseModel):
    amount_paise: int = Field(gt=0)

class DepositRead(BaseModel):
    campaign_id: int
    applied: bool = Field(description="False when the idempotency key was already used")
    ledger_entry_id: Optional[int] = None
    budget: BudgetRead

class JoinCampaignRequest(BaseModel):
    platforms: List[Platform] = Field(min_length=1)
    handles: Dict[Platform, str] = Field(default_factory=dict)

    @field_validator('platforms', mode='before')
    @classmethod
    def validate_platforms(cls, v):
        return normalize_platform_list(v)

    @field_validator('handles', mode='before')
    @classmethod
    def validate_handles(cls, v: Any):
        if not isinstance(v, dict):
            raise ValueError('handles must be an object of platform -> handle')
        cleaned = {}
        for key, handle in v.items():
            if handle is None:
                continue
            handle = str(handle).strip()
            if len(handle) > 100:
                raise ValueError('handles must be at most 100 characters')
            if handle:
                cleaned[normalize_platform(key)] = handle
        return cleaned

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "platforms": ["INSTAGRAM"],
            "handles": {"instagram": "@maya.makes"}
        }
    })

class ParticipationRead(BaseModel):
    id: int
    campaign_id: int
    creator_id: int
    platforms: List[Platform]
    handles: Dict[str, str]
    eligible_until: datetime
    status: ParticipationStatus

    model_config = ConfigDict(from_attributes=True)
