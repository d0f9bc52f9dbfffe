"""
Trip management routes.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, joinedload
from typing import List
from app.db.session import get_db
from app.models.user import User
from app.models.trip import Trip, TripMember, MemberStatus
from app.schemas.trip import (
    TripCreate, TripResponse, TripDetailResponse,
    TripMemberResponse, JoinRequest, JoinResponse
)
from app.api.dependencies import get_current_user
from app.services.expense_service import build_expense_response
from app.services import trip_service

router = APIRouter(prefix="/trips", tags=["trips"])


def check_trip_access(trip_id: int, user_id: int, db: Session) -> Trip:
    """Check if user is an approved member of the trip."""
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Trip not found"
        )

    if not trip_service.is_approved_member(trip_id, user_id, db):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied to this trip"
        )

    return trip


def build_member_response(member: TripMember, trip: Trip) -> TripMemberResponse:
    return TripMemberResponse(
        user_id=member.user_id,
        display_name=member.user.display_name,
        status=member.status,
        is_host=member.user_id == trip.host_id,
        requested_at=member.created_at,
        approved_at=member.approved_at
    )


def build_trip_detail(snapshot: trip_service.TripSnapshot) -> TripDetailResponse:
    trip = snapshot.trip
    return TripDetailResponse(
        id=trip.id,
        name=trip.name,
        code=trip.code,
        currency=trip.currency,
        currency_symbol=trip.currency_symbol,
        host_id=trip.host_id,
        is_settled=trip.is_settled,
        created_at=trip.created_at,
        members=[build_member_response(m, trip) for m in snapshot.members],
        expenses=[build_expense_response(e) for e in snapshot.expenses]
    )


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a new trip and get its shareable code."""
    return trip_service.create_trip(
        trip_data.name,
        current_user,
        db,
        currency=trip_data.currency,
        currency_symbol=trip_data.currency_symbol
    )


@router.get("", response_model=List[TripResponse])
async def list_trips(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List all trips the current user is an approved member of."""
    return db.query(Trip).join(TripMember).filter(
        TripMember.user_id == current_user.id,
        TripMember.status == MemberStatus.APPROVED
    ).order_by(Trip.id).all()


@router.post("/join", response_model=JoinResponse)
async def join_trip(
    join_request: JoinRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Request to join a trip by its code."""
    try:
        trip = trip_service.get_trip_by_code(join_request.code, db)
        member_status = trip_service.request_trip_membership(trip, current_user, db)
    except LookupError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    return JoinResponse(trip_id=trip.id, status=member_status)


@router.get("/code/{code}", response_model=TripDetailResponse)
async def get_trip_by_code(
    code: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get trip details, members and expenses by code."""
    try:
        snapshot = trip_service.fetch_trip_by_code(code, db)
    except LookupError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    if current_user.id not in snapshot.member_ids:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied to this trip"
        )
    return build_trip_detail(snapshot)


@router.get("/{trip_id}", response_model=TripDetailResponse)
async def get_trip(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get trip details."""
    trip = check_trip_access(trip_id, current_user.id, db)
    return build_trip_detail(trip_service.load_snapshot(trip, db))


@router.get("/{trip_id}/members", response_model=List[TripMemberResponse])
async def get_members(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List members. The host also sees pending and denied requests."""
    trip = check_trip_access(trip_id, current_user.id, db)

    query = db.query(TripMember).options(
        joinedload(TripMember.user)
    ).filter(TripMember.trip_id == trip_id)
    if trip.host_id != current_user.id:
        query = query.filter(TripMember.status == MemberStatus.APPROVED)

    return [build_member_response(m, trip) for m in query.order_by(TripMember.id).all()]


def _set_status(trip_id: int, user_id: int, member_status: MemberStatus, current_user: User, db: Session):
    trip = check_trip_access(trip_id, current_user.id, db)
    try:
        member = trip_service.set_member_status(trip, user_id, member_status, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return build_member_response(member, trip)


@router.post("/{trip_id}/members/{user_id}/approve", response_model=TripMemberResponse)
async def approve_member(
    trip_id: int,
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Approve a join request (host only)."""
    return _set_status(trip_id, user_id, MemberStatus.APPROVED, current_user, db)


@router.post("/{trip_id}/members/{user_id}/deny", response_model=TripMemberResponse)
async def deny_member(
    trip_id: int,
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Deny a join request or remove a member (host only)."""
    return _set_status(trip_id, user_id, MemberStatus.DENIED, current_user, db)
