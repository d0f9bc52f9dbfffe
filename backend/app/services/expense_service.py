"""
Expense service for expense-related business logic.
"""
import logging
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from app.core.exceptions import ValidationError
from app.models.expense import Expense, ExpenseSplit
from app.models.trip import Trip
from app.models.user import User
from app.schemas.expense import ExpenseResponse, ExpenseSplitResponse
from app.services.settlement_engine import CENT, equal_split, to_decimal
from app.services.trip_service import get_approved_members

logger = logging.getLogger(__name__)


def build_splits(amount: Decimal, split_among: Sequence[int],
                 shares: Optional[Sequence[Tuple[int, Decimal]]] = None) -> List[Tuple[int, Decimal]]:
    """Equal split among ``split_among`` unless explicit ``shares`` are given."""
    if shares is None:
        return equal_split(amount, split_among)

    shares = [(user_id, to_decimal(share)) for user_id, share in shares]
    if not shares:
        raise ValidationError("Cannot split an expense among zero members")
    if any(share != share.quantize(CENT) for _, share in shares):
        raise ValidationError("Shares must be whole cents")
    if sum(share for _, share in shares) != amount:
        raise ValidationError("Shares must add up to the expense amount")
    return shares


def record_expense(
    trip: Trip,
    payer_id: int,
    name: str,
    amount,
    split_among: Sequence[int],
    created_by: int,
    db: Session,
    shares: Optional[Sequence[Tuple[int, Decimal]]] = None
) -> Expense:
    """Create an expense with its splits. Payer and split members must be approved members."""
    amount = to_decimal(amount)
    if amount <= 0:
        raise ValidationError("Expense amount must be greater than 0")

    member_ids = {m.user_id for m in get_approved_members(trip.id, db)}
    if payer_id not in member_ids:
        raise ValidationError(f"Payer {payer_id} is not a member of this trip")

    splits = build_splits(amount, split_among, shares)
    unknown = [user_id for user_id, _ in splits if user_id not in member_ids]
    if unknown:
        raise ValidationError(f"Cannot split with non-members: {unknown}")

    expense = Expense(
        trip_id=trip.id,
        name=name,
        amount=amount,
        currency=trip.currency,
        paid_by=payer_id,
        created_by=created_by
    )
    db.add(expense)
    db.flush()

    for user_id, share in splits:
        db.add(ExpenseSplit(expense_id=expense.id, user_id=user_id, amount=share))

    # New spending reopens a finalized settlement
    trip.is_settled = False
    db.commit()
    db.refresh(expense)

    logger.info(f"Recorded expense {expense.id} of {amount} {trip.currency} in trip {trip.id}, split {len(splits)} ways")
    return expense


def delete_expense(expense_id: int, trip: Trip, user: User, db: Session) -> None:
    """Delete an expense. Only its creator or the trip host may do this."""
    expense = db.query(Expense).filter(
        Expense.id == expense_id,
        Expense.trip_id == trip.id
    ).first()
    if not expense:
        raise LookupError("Expense not found")
    if user.id not in (expense.created_by, trip.host_id):
        raise PermissionError("Only the creator or the trip host can delete this expense")

    db.delete(expense)
    trip.is_settled = False
    db.commit()
    logger.info(f"Deleted expense {expense_id} from trip {trip.id}")


def build_expense_response(expense: Expense) -> ExpenseResponse:
    """Flatten an expense and its splits for the API."""
    return ExpenseResponse(
        id=expense.id,
        trip_id=expense.trip_id,
        name=expense.name,
        amount=expense.amount,
        currency=expense.currency,
        paid_by=expense.paid_by,
        payer_name=expense.payer.display_name,
        created_by=expense.created_by,
        splits=[
            ExpenseSplitResponse(
                user_id=s.user_id,
                display_name=s.user.display_name,
                amount=s.amount
            )
            for s in expense.splits
        ],
        created_at=expense.created_at
    )
