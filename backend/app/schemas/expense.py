"""
Pydantic schemas for Expense entity.
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal


class ExpenseShare(BaseModel):
    """Explicit share of an expense for one member."""
    user_id: int
    amount: Decimal = Field(ge=0, max_digits=10, decimal_places=2)


class ExpenseCreate(BaseModel):
    """Schema for expense creation."""
    name: str = Field(min_length=1, max_length=200)
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    paid_by: Optional[int] = None  # Defaults to the current user
    split_among: List[int] = []  # User IDs who share this expense equally
    shares: Optional[List[ExpenseShare]] = None  # Explicit per-member amounts instead of an equal split

    @field_validator("split_among")
    @classmethod
    def unique_members(cls, v):
        """Reject the same member listed twice."""
        if len(set(v)) != len(v):
            raise ValueError("split_among contains duplicate members")
        return v

    @model_validator(mode="after")
    def check_split(self):
        """Require exactly one way of splitting, matching the amount."""
        if self.shares is None:
            if not self.split_among:
                raise ValueError("Select at least one person to split this expense among")
            return self
        if self.split_among:
            raise ValueError("Provide either split_among or shares, not both")
        if not self.shares:
            raise ValueError("shares must not be empty")
        user_ids = [share.user_id for share in self.shares]
        if len(set(user_ids)) != len(user_ids):
            raise ValueError("shares contains duplicate members")
        if sum(share.amount for share in self.shares) != self.amount:
            raise ValueError("shares must add up to the expense amount")
        return self


class ExpenseSplitResponse(BaseModel):
    """Schema for expense split response."""
    user_id: int
    display_name: str
    amount: Decimal


class ExpenseResponse(BaseModel):
    """Schema for expense response."""
    id: int
    trip_id: int
    name: str
    amount: Decimal
    currency: str
    paid_by: int
    payer_name: str
    created_by: int
    splits: List[ExpenseSplitResponse] = []
    created_at: datetime
