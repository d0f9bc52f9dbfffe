"""
Settlement service: runs the settlement engine over a trip snapshot.
"""
import logging
from decimal import Decimal
from typing import List, Tuple

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.utils import round_money, format_money
from app.models.payment import Payment, PaymentStatus
from app.models.settlement import SettlementResult
from app.models.trip import Trip
from app.schemas.settlement import SettlementSummary, MemberBalance, Transfer
from app.services import settlement_engine as engine
from app.services.trip_service import TripSnapshot, load_snapshot

logger = logging.getLogger(__name__)


def snapshot_to_engine(snapshot: TripSnapshot) -> Tuple[List[engine.Member], List[engine.Expense]]:
    """Convert ORM rows into engine values."""
    members = [engine.Member(m.user_id, m.user.display_name) for m in snapshot.members]
    expenses = [
        engine.Expense(
            id=e.id,
            amount=e.amount,
            payer_id=e.paid_by,
            splits=[(s.user_id, s.amount) for s in e.splits],
        )
        for e in snapshot.expenses
    ]
    return members, expenses


def confirmed_payments(trip_id: int, db: Session) -> List[engine.Transfer]:
    """Confirmed payments of a trip as engine transfers."""
    payments = db.query(Payment).filter(
        Payment.trip_id == trip_id,
        Payment.status == PaymentStatus.CONFIRMED
    ).order_by(Payment.id).all()
    return [engine.Transfer(p.payer_id, p.payee_id, engine.to_decimal(p.amount)) for p in payments]


def summarize(snapshot: TripSnapshot, plan: engine.SettlementPlan,
              payments: List[engine.Transfer] = ()) -> SettlementSummary:
    """
    Build the display summary for a computed plan.

    Confirmed ``payments`` are netted against the balances to give what is
    still outstanding and the transfers that would clear it.
    """
    trip = snapshot.trip
    symbol = trip.currency_symbol
    names = {m.user_id: m.user.display_name for m in snapshot.members}

    total = plan.total_paid
    member_count = len(plan.balances)
    equal_share = round_money(total / member_count) if member_count else Decimal("0.00")

    balances = [
        MemberBalance(
            user_id=user_id,
            display_name=names.get(user_id, str(user_id)),
            total_paid=round_money(b.total_paid),
            total_owed=round_money(b.total_owed),
            balance=round_money(b.balance),
        )
        for user_id, b in plan.balances.items()
    ]

    def to_schema(transfer_list):
        return [
            Transfer(
                from_user_id=t.from_id,
                from_name=names.get(t.from_id, str(t.from_id)),
                to_user_id=t.to_id,
                to_name=names.get(t.to_id, str(t.to_id)),
                amount=round_money(t.amount),
            )
            for t in transfer_list
        ]

    transfers = to_schema(plan.transfers)
    outstanding = engine.apply_transfers(plan.balances, payments)
    if payments:
        remaining = to_schema(engine.settle(outstanding, tolerance=settings.SETTLEMENT_TOLERANCE))
    else:
        remaining = transfers

    summary_lines = [
        f"Trip Summary: {trip.name}",
        f"Total Cost: {format_money(total, symbol)}",
        f"Per Person: {format_money(equal_share, symbol)}",
        "",
        "Balances:",
    ]
    for b in balances:
        summary_lines.append(
            f"  {b.display_name}: {format_money(b.balance, symbol, signed=True)} "
            f"(paid {format_money(b.total_paid, symbol)}, owes {format_money(b.total_owed, symbol)})"
        )
    summary_lines.append("")
    summary_lines.append("Settlements:")
    if transfers:
        for t in transfers:
            summary_lines.append(f"  {t.from_name} pays {t.to_name}: {format_money(t.amount, symbol)}")
    else:
        summary_lines.append("  Everyone is settled up")

    return SettlementSummary(
        trip_id=trip.id,
        currency=trip.currency,
        currency_symbol=symbol,
        total_expenses=round_money(total),
        equal_share=equal_share,
        member_count=member_count,
        balances=balances,
        transfers=transfers,
        residuals={uid: round_money(amount) for uid, amount in plan.residuals.items()},
        outstanding={uid: round_money(amount) for uid, amount in outstanding.items()},
        remaining_transfers=remaining,
        summary="\n".join(summary_lines),
    )


def calculate_settlement(trip: Trip, db: Session) -> SettlementSummary:
    """
    Compute balances and transfers for a trip without storing anything.
    Raises ValidationError if an expense references someone who is no
    longer an approved member.
    """
    snapshot = load_snapshot(trip, db)
    members, expenses = snapshot_to_engine(snapshot)
    plan = engine.build_settlement_plan(
        members, expenses, tolerance=settings.SETTLEMENT_TOLERANCE
    )
    if not plan.is_consistent:
        logger.warning(f"Trip {trip.id} settlement left residual balances: {plan.residuals}")
    return summarize(snapshot, plan, confirmed_payments(trip.id, db))


def finalize_settlement(trip: Trip, db: Session) -> SettlementResult:
    """Compute the settlement, store it as the trip's latest result and mark the trip settled."""
    summary = calculate_settlement(trip, db)
    calculation_data = summary.model_dump(mode="json", exclude={"summary"})

    # Only the latest result is kept
    db.query(SettlementResult).filter(
        SettlementResult.trip_id == trip.id
    ).delete()

    settlement = SettlementResult(
        trip_id=trip.id,
        calculation_data=calculation_data,
        summary=summary.summary
    )
    db.add(settlement)
    trip.is_settled = True
    db.commit()
    db.refresh(settlement)

    logger.info(f"Finalized settlement for trip {trip.id} with {len(summary.transfers)} transfers")
    return settlement
