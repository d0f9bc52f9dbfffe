"""
Pydantic schemas for Trip entity.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from app.models.trip import MemberStatus
from app.schemas.expense import ExpenseResponse


class TripBase(BaseModel):
    """Base trip schema."""
    name: str = Field(min_length=1, max_length=200)
    currency: Optional[str] = None  # Defaults to DEFAULT_CURRENCY
    currency_symbol: Optional[str] = None


class TripCreate(TripBase):
    """Schema for trip creation."""
    pass


class TripResponse(BaseModel):
    """Schema for trip response."""
    id: int
    name: str
    code: str
    currency: str
    currency_symbol: str
    host_id: int
    is_settled: bool
    created_at: datetime

    class Config:
        from_attributes = True


class TripMemberResponse(BaseModel):
    """Schema for trip member response."""
    user_id: int
    display_name: str
    status: MemberStatus
    is_host: bool
    requested_at: datetime
    approved_at: Optional[datetime] = None


class TripDetailResponse(TripResponse):
    """Schema for detailed trip response with members and expenses."""
    members: List[TripMemberResponse] = []
    expenses: List[ExpenseResponse] = []


class JoinRequest(BaseModel):
    """Schema for joining a trip by code."""
    code: str = Field(min_length=1, max_length=16)


class JoinResponse(BaseModel):
    """Schema for join request result."""
    trip_id: int
    status: MemberStatus
