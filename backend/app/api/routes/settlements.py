"""
Settlement routes.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.models.user import User
from app.models.settlement import SettlementResult
from app.schemas.settlement import SettlementResultResponse, SettlementSummary
from app.api.dependencies import get_current_user
from app.api.routes.trips import check_trip_access
from app.services.settlement_service import calculate_settlement, finalize_settlement

router = APIRouter(prefix="/settlement", tags=["settlement"])


@router.get("/{trip_id}/preview", response_model=SettlementSummary)
async def preview_settlement(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Compute current balances and the transfers that would settle them."""
    trip = check_trip_access(trip_id, current_user.id, db)
    return calculate_settlement(trip, db)


@router.post("/{trip_id}/finalize", response_model=SettlementResultResponse)
async def finalize(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Compute and store the settlement for a trip (host only)."""
    trip = check_trip_access(trip_id, current_user.id, db)
    if trip.host_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the trip host can finalize the settlement"
        )
    return finalize_settlement(trip, db)


@router.get("/{trip_id}/result", response_model=SettlementResultResponse)
async def get_settlement_result(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get the finalized settlement for a trip."""
    check_trip_access(trip_id, current_user.id, db)

    # Only the latest settlement is kept
    settlement = db.query(SettlementResult).filter(
        SettlementResult.trip_id == trip_id
    ).first()

    if not settlement:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Settlement result not found"
        )

    return settlement
