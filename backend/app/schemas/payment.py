"""
Pydantic schemas for Payment entity.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal
from app.models.payment import PaymentStatus


class PaymentCreate(BaseModel):
    """Schema for reporting a payment to another member."""
    payee_id: int
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)


class PaymentResponse(BaseModel):
    """Schema for payment response."""
    id: int
    trip_id: int
    payer_id: int
    payee_id: int
    amount: Decimal
    currency: str
    status: PaymentStatus
    created_at: datetime
    confirmed_at: Optional[datetime] = None

    class Config:
        from_attributes = True
