"""
Pydantic schemas for content submissions and admin verification.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator
from ..db.enums import Platform, SubmissionStatus, SubmissionPayoutStatus, VerificationRequestStatus
from .base import normalize_platform, validate_http_url

class SubmitContentRequest(BaseModel):
    platform: Platform
    reel_url: str = Field(min_length=1, max_length=2000)

    @field_validator('platform', mode='before')
    @classmethod
    def validate_platform(cls, v):
        return normalize_platform(v)

    @field_validator('reel_url')
    @classmethod
    def validate_reel_url(cls, v):
        return validate_http_url(v)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "platform": "ig",
            "reel_url": "https://www.instagram.com/reel/Cx1abc/"
        }
    })

class SubmissionRead(BaseModel):
    id: int
    campaign_id: int
    creator_id: int
    platform: Platform
    handle: str
    reel_url: str
    status: SubmissionStatus
    paid_views_total: int
    last_verified_views_total: int
    last_verified_cycle_index: int
    reserved_paise: int
    payout_status: SubmissionPayoutStatus
    eligible_until: Optional[datetime]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class VerificationRequestRead(BaseModel):
    id: int
    submission_id: int
    cycle_index: int
    status: VerificationRequestStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class AdminVerifyRequest(BaseModel):
    approved: bool
    verified_views_total: Optional[int] = Field(None, ge=0)
    proof_note: Optional[str] = Field(None, max_length=500)
    proof_url: Optional[str] = Field(None, max_length=2000)

    @field_validator('proof_url')
    @classmethod
    def validate_proof_url(cls, v):
        return validate_http_url(v) if v else None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "approved": True,
            "verified_views_total": 2500,
            "proof_note": "Insights screenshot checked"
        }
    })

class VerificationOutcomeRead(BaseModel):
    approved: bool
    cycle_index: int
    previous_status: SubmissionStatus
    reserved_delta_paise: int
    verification_check_id: Optional[int]
    submission: SubmissionRead

    model_config = ConfigDict(from_attributes=True)
