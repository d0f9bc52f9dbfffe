"""
Trip service for trip creation, lookup by code and membership requests.
"""
import logging
import secrets
import string
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session, joinedload

from app.core.config import settings
from app.models.expense import Expense, ExpenseSplit
from app.models.trip import Trip, TripMember, MemberStatus
from app.models.user import User

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_CODE_ATTEMPTS = 10


class TripSnapshot:
    """A trip with its approved members and all expenses, read at one point in time."""

    def __init__(self, trip: Trip, members: List[TripMember], expenses: List[Expense]):
        self.trip = trip
        self.members = members
        self.expenses = expenses

    @property
    def member_ids(self) -> List[int]:
        return [m.user_id for m in self.members]


def normalize_code(code: str) -> str:
    return code.strip().upper()


def generate_trip_code(db: Session, length: int = None) -> str:
    """Generate a short uppercase code that no other trip uses."""
    length = length or settings.TRIP_CODE_LENGTH
    for _ in range(MAX_CODE_ATTEMPTS):
        code = "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))
        if not db.query(Trip.id).filter(Trip.code == code).first():
            return code
        logger.debug(f"Trip code collision on {code}, retrying")
    raise RuntimeError(f"Could not generate a unique trip code after {MAX_CODE_ATTEMPTS} attempts")


def create_trip(name: str, host: User, db: Session, currency: str = None, currency_symbol: str = None) -> Trip:
    """Create a trip with the host as its first approved member."""
    trip = Trip(
        name=name,
        code=generate_trip_code(db),
        currency=(currency or settings.DEFAULT_CURRENCY).upper(),
        currency_symbol=currency_symbol or settings.DEFAULT_CURRENCY_SYMBOL,
        host_id=host.id,
    )
    db.add(trip)
    db.flush()

    member = TripMember(
        trip_id=trip.id,
        user_id=host.id,
        status=MemberStatus.APPROVED,
        approved_at=datetime.utcnow(),
        approved_by=host.id,
    )
    db.add(member)
    db.commit()
    db.refresh(trip)

    logger.info(f"Created trip {trip.id} with code {trip.code} for host {host.id}")
    return trip


def get_trip_by_code(code: str, db: Session) -> Trip:
    """Return the trip with this code or raise LookupError."""
    trip = db.query(Trip).filter(Trip.code == normalize_code(code)).first()
    if not trip:
        raise LookupError(f"Trip with code {code!r} not found")
    return trip


def get_approved_members(trip_id: int, db: Session) -> List[TripMember]:
    """Approved members in the order they joined."""
    return db.query(TripMember).options(
        joinedload(TripMember.user)
    ).filter(
        TripMember.trip_id == trip_id,
        TripMember.status == MemberStatus.APPROVED
    ).order_by(TripMember.id).all()


def is_approved_member(trip_id: int, user_id: int, db: Session) -> bool:
    return db.query(TripMember.id).filter(
        TripMember.trip_id == trip_id,
        TripMember.user_id == user_id,
        TripMember.status == MemberStatus.APPROVED
    ).first() is not None


def load_snapshot(trip: Trip, db: Session) -> TripSnapshot:
    """Read approved members and expenses with splits for a trip."""
    members = get_approved_members(trip.id, db)
    expenses = db.query(Expense).options(
        joinedload(Expense.payer),
        joinedload(Expense.splits).joinedload(ExpenseSplit.user)
    ).filter(
        Expense.trip_id == trip.id
    ).order_by(Expense.created_at, Expense.id).all()
    return TripSnapshot(trip, members, expenses)


def fetch_trip_by_code(code: str, db: Session) -> TripSnapshot:
    """Load the trip for a code together with its members and expenses."""
    return load_snapshot(get_trip_by_code(code, db), db)


def request_membership(trip_code: str, user: User, db: Session) -> MemberStatus:
    """Ask to join the trip with this code."""
    return request_trip_membership(get_trip_by_code(trip_code, db), user, db)


def request_trip_membership(trip: Trip, user: User, db: Session) -> MemberStatus:
    """
    Ask to join ``trip``.

    The host is always approved. A user who already asked gets their
    current status back instead of a second request.
    """
    if trip.host_id == user.id:
        return MemberStatus.APPROVED

    existing = db.query(TripMember).filter(
        TripMember.trip_id == trip.id,
        TripMember.user_id == user.id
    ).first()
    if existing:
        return existing.status

    member = TripMember(trip_id=trip.id, user_id=user.id, status=MemberStatus.PENDING)
    db.add(member)
    db.commit()

    logger.info(f"User {user.id} requested to join trip {trip.id}")
    return MemberStatus.PENDING


def set_member_status(trip: Trip, user_id: int, status: MemberStatus, acting_user: User, db: Session) -> TripMember:
    """Approve or deny a join request. Only the host may do this."""
    if trip.host_id != acting_user.id:
        raise PermissionError("Only the trip host can manage members")
    if user_id == trip.host_id:
        raise ValueError("The host's membership cannot be changed")

    member = db.query(TripMember).filter(
        TripMember.trip_id == trip.id,
        TripMember.user_id == user_id
    ).first()
    if not member:
        raise LookupError("Join request not found")

    member.status = status
    if status == MemberStatus.APPROVED:
        member.approved_at = datetime.utcnow()
        member.approved_by = acting_user.id
    else:
        member.approved_at = None
        member.approved_by = None
    db.commit()
    db.refresh(member)

    logger.info(f"Member {user_id} of trip {trip.id} set to {status.value} by {acting_user.id}")
    return member
