"""
Pydantic schemas for user-related operations.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, EmailStr, ConfigDict, field_validator
from ..db.enums import UserRole

class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    role: UserRole = UserRole.CREATOR

    @field_validator('role')
    @classmethod
    def validate_role(cls, v):
        if v == UserRole.ADMIN:
            raise ValueError('ADMIN users cannot be self-registered')
        return v

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "name": "Maya Rao",
            "email": "maya@example.com",
            "role": "CREATOR"
        }
    })

class UserRead(BaseModel):
    id: int
    name: str
    email: str
    api_key: Optional[str]
    is_active: bool
    role: UserRole
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class EarningsRead(BaseModel):
    creator_id: int
    pending_paise: int = Field(description="Verified, not yet batched into a payout")
    in_flight_paise: int = Field(description="On payouts awaiting settlement")
    total_paid_paise: int

    model_config = ConfigDict(from_attributes=True)
