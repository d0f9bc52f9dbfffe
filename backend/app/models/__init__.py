"""Models package - Import all models for SQLAlchemy registration."""
from app.models.user import User
from app.models.trip import Trip, TripMember, MemberStatus
from app.models.expense import Expense, ExpenseSplit
from app.models.payment import Payment, PaymentStatus
from app.models.settlement import SettlementResult

__all__ = [
    "User",
    "Trip",
    "TripMember",
    "MemberStatus",
    "Expense",
    "ExpenseSplit",
    "Payment",
    "PaymentStatus",
    "SettlementResult",
]
