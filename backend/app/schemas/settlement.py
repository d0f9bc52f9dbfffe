"""
Pydantic schemas for Settlement entity.
"""
from pydantic import BaseModel
from typing import List, Dict, Any
from datetime import datetime
from decimal import Decimal


class Transfer(BaseModel):
    """Schema for a single transfer in settlement."""
    from_user_id: int
    from_name: str
    to_user_id: int
    to_name: str
    amount: Decimal


class MemberBalance(BaseModel):
    """Schema for one member's paid/owed totals."""
    user_id: int
    display_name: str
    total_paid: Decimal
    total_owed: Decimal
    balance: Decimal  # Positive gets money back, negative still owes


class SettlementSummary(BaseModel):
    """Schema for settlement summary."""
    trip_id: int
    currency: str
    currency_symbol: str
    total_expenses: Decimal
    equal_share: Decimal  # Total divided by member count, for display
    member_count: int
    balances: List[MemberBalance]
    transfers: List[Transfer]
    residuals: Dict[int, Decimal] = {}  # Unsettled amounts when balances do not net to zero
    outstanding: Dict[int, Decimal] = {}  # Balances after confirmed payments
    remaining_transfers: List[Transfer] = []  # Transfers still needed after confirmed payments
    summary: str


class SettlementResultResponse(BaseModel):
    """Schema for settlement result response."""
    id: int
    trip_id: int
    calculation_data: Dict[str, Any]
    summary: str
    created_at: datetime

    class Config:
        from_attributes = True
