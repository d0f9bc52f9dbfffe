"""
Expense management routes.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, joinedload
from typing import List
from app.db.session import get_db
from app.models.user import User
from app.models.expense import Expense, ExpenseSplit
from app.schemas.expense import ExpenseCreate, ExpenseResponse
from app.api.dependencies import get_current_user
from app.api.routes.trips import check_trip_access
from app.services.expense_service import record_expense, delete_expense, build_expense_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.get("/{trip_id}", response_model=List[ExpenseResponse])
async def list_expenses(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List all expenses of a trip, newest first."""
    check_trip_access(trip_id, current_user.id, db)

    expenses = db.query(Expense).options(
        joinedload(Expense.payer),
        joinedload(Expense.splits).joinedload(ExpenseSplit.user)
    ).filter(
        Expense.trip_id == trip_id
    ).order_by(Expense.created_at.desc(), Expense.id.desc()).all()

    return [build_expense_response(e) for e in expenses]


@router.post("/{trip_id}", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    trip_id: int,
    expense_data: ExpenseCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add an expense, split equally among the selected members unless shares are given."""
    trip = check_trip_access(trip_id, current_user.id, db)

    shares = None
    if expense_data.shares is not None:
        shares = [(s.user_id, s.amount) for s in expense_data.shares]

    # ValidationError from the service is turned into a 400 by the app's handler
    expense = record_expense(
        trip=trip,
        payer_id=expense_data.paid_by or current_user.id,
        name=expense_data.name,
        amount=expense_data.amount,
        split_among=expense_data.split_among,
        created_by=current_user.id,
        db=db,
        shares=shares
    )
    return build_expense_response(expense)


@router.delete("/{trip_id}/{expense_id}")
async def remove_expense(
    trip_id: int,
    expense_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete an expense (creator or host)."""
    trip = check_trip_access(trip_id, current_user.id, db)
    try:
        delete_expense(expense_id, trip, current_user, db)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return {"message": "Expense deleted successfully"}
