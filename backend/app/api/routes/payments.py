"""
Payment confirmation routes.
"""
import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import List
from app.db.session import get_db
from app.models.user import User
from app.models.payment import Payment, PaymentStatus
from app.schemas.payment import PaymentCreate, PaymentResponse
from app.api.dependencies import get_current_user
from app.api.routes.trips import check_trip_access
from app.services.trip_service import is_approved_member

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/{trip_id}", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(
    trip_id: int,
    payment_data: PaymentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Report a payment the current user made to another member."""
    trip = check_trip_access(trip_id, current_user.id, db)

    if payment_data.payee_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot pay yourself"
        )
    if not is_approved_member(trip_id, payment_data.payee_id, db):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Payee is not a member of this trip"
        )

    payment = Payment(
        trip_id=trip_id,
        payer_id=current_user.id,
        payee_id=payment_data.payee_id,
        amount=payment_data.amount,
        currency=trip.currency
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)

    logger.info(f"Payment {payment.id} of {payment.amount} recorded in trip {trip_id}")
    return payment


@router.get("/{trip_id}", response_model=List[PaymentResponse])
async def list_payments(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List payments the current user made or received in a trip."""
    check_trip_access(trip_id, current_user.id, db)
    return db.query(Payment).filter(
        Payment.trip_id == trip_id,
        or_(Payment.payer_id == current_user.id, Payment.payee_id == current_user.id)
    ).order_by(Payment.id).all()


def _update_status(trip_id: int, payment_id: int, new_status: PaymentStatus, current_user: User, db: Session) -> Payment:
    check_trip_access(trip_id, current_user.id, db)
    payment = db.query(Payment).filter(
        Payment.id == payment_id,
        Payment.trip_id == trip_id
    ).first()
    if not payment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Payment not found"
        )
    if payment.payee_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the payee can update this payment"
        )

    payment.status = new_status
    payment.confirmed_at = datetime.utcnow() if new_status == PaymentStatus.CONFIRMED else None
    db.commit()
    db.refresh(payment)
    return payment


@router.post("/{trip_id}/{payment_id}/confirm", response_model=PaymentResponse)
async def confirm_payment(
    trip_id: int,
    payment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Confirm a payment was received (payee only)."""
    return _update_status(trip_id, payment_id, PaymentStatus.CONFIRMED, current_user, db)


@router.post("/{trip_id}/{payment_id}/dispute", response_model=PaymentResponse)
async def dispute_payment(
    trip_id: int,
    payment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Dispute a reported payment (payee only)."""
    return _update_status(trip_id, payment_id, PaymentStatus.DISPUTED, current_user, db)
