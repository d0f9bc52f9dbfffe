"""
Settlement engine: member balances and greedy debt settlement.

Works on an in-memory snapshot only. Callers build ``Member`` and
``Expense`` values from whatever storage they use and get back balances
and a list of transfers that clears them.
"""
import enum
import logging
import warnings
from decimal import Decimal, ROUND_DOWN
from typing import Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Tuple

from app.core.exceptions import ValidationError, ConsistencyWarning

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
TOLERANCE = Decimal("0.01")


class SettleOrder(str, enum.Enum):
    """Order in which debtors and creditors are matched."""
    LARGEST_FIRST = "largest_first"
    INSERTION = "insertion"


def to_decimal(value) -> Decimal:
    """Convert int/float/str/Decimal to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError(f"Invalid amount: {value!r}")
    try:
        result = Decimal(str(value))
    except (ArithmeticError, ValueError, TypeError):
        raise ValidationError(f"Invalid amount: {value!r}")
    if not result.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")
    return result


class Member:
    """A trip participant. The display name is never used in computation."""

    def __init__(self, id: Hashable, display_name: Optional[str] = None):
        self.id = id
        self.display_name = display_name if display_name is not None else str(id)

    def __repr__(self):
        return f"Member(id={self.id!r}, display_name={self.display_name!r})"


class Expense:
    """One payment by ``payer_id`` attributed across ``splits``."""

    def __init__(self, id: Hashable, amount, payer_id: Hashable,
                 splits: Iterable[Tuple[Hashable, object]]):
        self.id = id
        self.amount = to_decimal(amount)
        self.payer_id = payer_id
        self.splits = [(member_id, to_decimal(share)) for member_id, share in splits]

    def __repr__(self):
        return f"Expense(id={self.id!r}, amount={self.amount}, payer_id={self.payer_id!r})"


class Balance:
    """Net position of one member."""

    def __init__(self, total_paid: Decimal = Decimal(0), total_owed: Decimal = Decimal(0)):
        self.total_paid = total_paid
        self.total_owed = total_owed

    @property
    def balance(self) -> Decimal:
        return self.total_paid - self.total_owed

    def __eq__(self, other):
        if not isinstance(other, Balance):
            return NotImplemented
        return (self.total_paid, self.total_owed) == (other.total_paid, other.total_owed)

    def __repr__(self):
        return f"Balance(paid={self.total_paid}, owed={self.total_owed}, balance={self.balance})"


class Transfer:
    """Represents a single transfer between members."""

    def __init__(self, from_id: Hashable, to_id: Hashable, amount: Decimal):
        self.from_id = from_id
        self.to_id = to_id
        self.amount = amount

    def __eq__(self, other):
        if not isinstance(other, Transfer):
            return NotImplemented
        return (self.from_id, self.to_id, self.amount) == (other.from_id, other.to_id, other.amount)

    def __repr__(self):
        return f"Transfer({self.from_id!r} -> {self.to_id!r}: {self.amount})"


class SettlementPlan:
    """Balances, transfers and whatever could not be settled."""

    def __init__(self, balances: Dict[Hashable, Balance], transfers: List[Transfer],
                 residuals: Dict[Hashable, Decimal]):
        self.balances = balances
        self.transfers = transfers
        self.residuals = residuals

    @property
    def is_consistent(self) -> bool:
        return not self.residuals

    @property
    def total_paid(self) -> Decimal:
        return sum((b.total_paid for b in self.balances.values()), Decimal(0))


def equal_split(amount, member_ids: Sequence[Hashable]) -> List[Tuple[Hashable, Decimal]]:
    """
    Split ``amount`` equally among ``member_ids``.

    Shares are rounded down to the cent and the leftover cents go one at a
    time to the members in the order given, so the shares always add up to
    ``amount`` exactly. 10 split three ways gives 3.34, 3.33, 3.33.
    """
    amount = to_decimal(amount)
    if amount <= 0:
        raise ValidationError(f"Expense amount must be positive, got {amount}")
    member_ids = list(member_ids)
    if not member_ids:
        raise ValidationError("Cannot split an expense among zero members")
    if len(set(member_ids)) != len(member_ids):
        raise ValidationError("Duplicate member in split")

    count = len(member_ids)
    base = (amount / count).quantize(CENT, rounding=ROUND_DOWN)
    shares = [base] * count
    extra_cents = int(((amount - base * count) / CENT).to_integral_value(rounding=ROUND_DOWN))
    for i in range(extra_cents):
        shares[i] += CENT
    # sub-cent leftovers only exist when the amount itself has them
    shares[0] += amount - sum(shares)
    return list(zip(member_ids, shares))


def _index_members(members: Iterable[Member]) -> Dict[Hashable, Member]:
    index: Dict[Hashable, Member] = {}
    for member in members:
        if member.id in index:
            raise ValidationError(f"Duplicate member id: {member.id!r}")
        index[member.id] = member
    return index


def validate_expense(expense: Expense, known: Mapping[Hashable, Member]) -> None:
    """Raise ValidationError if the expense cannot be applied to ``known`` members."""
    if expense.amount <= 0:
        raise ValidationError(
            f"Expense {expense.id!r} has non-positive amount {expense.amount}",
            expense_id=expense.id,
        )
    if expense.payer_id not in known:
        raise ValidationError(
            f"Expense {expense.id!r} is paid by unknown member {expense.payer_id!r}",
            expense_id=expense.id,
        )
    if not expense.splits:
        raise ValidationError(f"Expense {expense.id!r} has an empty split", expense_id=expense.id)

    seen = set()
    for member_id, share in expense.splits:
        if member_id not in known:
            raise ValidationError(
                f"Expense {expense.id!r} is split with unknown member {member_id!r}",
                expense_id=expense.id,
            )
        if member_id in seen:
            raise ValidationError(
                f"Expense {expense.id!r} lists member {member_id!r} twice",
                expense_id=expense.id,
            )
        if share < 0:
            raise ValidationError(
                f"Expense {expense.id!r} has a negative share for {member_id!r}",
                expense_id=expense.id,
            )
        seen.add(member_id)


def compute_balances(members: Iterable[Member], expenses: Iterable[Expense]) -> Dict[Hashable, Balance]:
    """
    Compute paid, owed and net balance for every member.

    The whole snapshot is validated first, so a bad expense raises
    ValidationError without touching any total.
    """
    known = _index_members(members)
    expenses = list(expenses)
    for expense in expenses:
        validate_expense(expense, known)

    balances = {member_id: Balance() for member_id in known}
    for expense in expenses:
        balances[expense.payer_id].total_paid += expense.amount
        for member_id, share in expense.splits:
            balances[member_id].total_owed += share
    return balances


def _positive_tolerance(tolerance) -> Decimal:
    tolerance = to_decimal(tolerance)
    if tolerance <= 0:
        raise ValidationError(f"Settlement tolerance must be positive, got {tolerance}")
    return tolerance


def _net(value) -> Decimal:
    if isinstance(value, Balance):
        return value.balance
    return to_decimal(value)


def settle(balances: Mapping[Hashable, object], tolerance=TOLERANCE,
           order: SettleOrder = SettleOrder.LARGEST_FIRST) -> List[Transfer]:
    """
    Produce transfers that bring every balance to zero.

    ``balances`` maps member id to a Balance or a plain net amount.
    Members within ``tolerance`` of zero take no part. If the balances do
    not sum to zero the loop still ends, the leftover is reported through
    a ConsistencyWarning and the transfers found so far are returned.
    """
    tolerance = _positive_tolerance(tolerance)
    # Debts are stored as positive amounts
    creditors = []
    debtors = []
    for member_id, value in balances.items():
        net = _net(value)
        if net >= tolerance:
            creditors.append([member_id, net])
        elif net <= -tolerance:
            debtors.append([member_id, -net])

    if SettleOrder(order) == SettleOrder.LARGEST_FIRST:
        creditors.sort(key=lambda x: x[1], reverse=True)
        debtors.sort(key=lambda x: x[1], reverse=True)

    transfers = []
    cred_idx = 0
    debt_idx = 0

    while cred_idx < len(creditors) and debt_idx < len(debtors):
        creditor = creditors[cred_idx]
        debtor = debtors[debt_idx]

        amount = min(creditor[1], debtor[1])
        transfers.append(Transfer(debtor[0], creditor[0], amount))
        logger.debug(f"Transfer {debtor[0]!r} -> {creditor[0]!r}: {amount}")

        creditor[1] -= amount
        debtor[1] -= amount

        if debtor[1] <= 0 or debtor[1] < tolerance:
            debt_idx += 1
        if creditor[1] <= 0 or creditor[1] < tolerance:
            cred_idx += 1

    leftover = [(uid, amt) for uid, amt in creditors[cred_idx:]] + \
               [(uid, -amt) for uid, amt in debtors[debt_idx:]]
    if leftover:
        message = "Balances do not net to zero; unsettled: " + ", ".join(
            f"{uid!r}={amt}" for uid, amt in leftover
        )
        logger.warning(message)
        warnings.warn(message, ConsistencyWarning, stacklevel=2)

    return transfers


def apply_transfers(balances: Mapping[Hashable, object],
                    transfers: Iterable[Transfer]) -> Dict[Hashable, Decimal]:
    """Return net balances after every transfer has been paid."""
    remaining = {member_id: _net(value) for member_id, value in balances.items()}
    for transfer in transfers:
        remaining[transfer.from_id] = remaining.get(transfer.from_id, Decimal(0)) + transfer.amount
        remaining[transfer.to_id] = remaining.get(transfer.to_id, Decimal(0)) - transfer.amount
    return remaining


def build_settlement_plan(members: Iterable[Member], expenses: Iterable[Expense],
                          tolerance=TOLERANCE,
                          order: SettleOrder = SettleOrder.LARGEST_FIRST) -> SettlementPlan:
    """Compute balances and the transfers that settle them."""
    tolerance = _positive_tolerance(tolerance)
    balances = compute_balances(members, expenses)
    transfers = settle(balances, tolerance=tolerance, order=order)
    residuals = {
        member_id: amount
        for member_id, amount in apply_transfers(balances, transfers).items()
        if abs(amount) >= tolerance
    }
    return SettlementPlan(balances, transfers, residuals)
