"""
Trip model for group expense sharing.
"""
from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import BaseModel
import enum


class MemberStatus(str, enum.Enum):
    """Join request status enumeration."""
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class Trip(BaseModel):
    """Trip model representing a shared expense session joined by code."""
    __tablename__ = "trips"

    name = Column(String(200), nullable=False)
    code = Column(String(16), unique=True, nullable=False, index=True)
    currency = Column(String(3), nullable=False, default="USD")
    currency_symbol = Column(String(8), nullable=False, default="$")
    host_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    is_settled = Column(Boolean, default=False, nullable=False)

    # Relationships
    host = relationship("User", back_populates="hosted_trips")
    members = relationship("TripMember", back_populates="trip", cascade="all, delete-orphan")
    expenses = relationship("Expense", back_populates="trip", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="trip", cascade="all, delete-orphan")
    settlement_results = relationship("SettlementResult", back_populates="trip", cascade="all, delete-orphan")


class TripMember(BaseModel):
    """Membership of a user in a trip, starting as a join request."""
    __tablename__ = "trip_members"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(SQLEnum(MemberStatus), default=MemberStatus.PENDING, nullable=False)
    approved_at = Column(DateTime, nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    # Relationships
    trip = relationship("Trip", back_populates="members")
    user = relationship("User", foreign_keys=[user_id], back_populates="memberships")

    __table_args__ = (
        UniqueConstraint('trip_id', 'user_id', name='uq_trip_member'),
    )
