"""
User model for authentication and user management.
"""
from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship
from app.db.base import BaseModel


class User(BaseModel):
    """User model with immutable username."""
    __tablename__ = "users"

    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    display_name = Column(String(100), nullable=False)  # Shown to other trip members
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    hosted_trips = relationship("Trip", back_populates="host")
    memberships = relationship(
        "TripMember", foreign_keys="TripMember.user_id", back_populates="user", cascade="all, delete-orphan"
    )
    expenses_paid = relationship("Expense", foreign_keys="Expense.paid_by", back_populates="payer")
