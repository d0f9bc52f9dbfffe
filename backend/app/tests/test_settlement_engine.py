"""
Tests for balance computation and debt settlement.
"""
import itertools
import random
import warnings
from decimal import Decimal

import pytest
from pydantic import ValidationError as SettingsError

from app.core.config import Settings
from app.core.exceptions import ValidationError, ConsistencyWarning
from app.services.settlement_engine import (
    Member, Expense, Transfer, SettleOrder,
    equal_split, compute_balances, settle, apply_transfers, build_settlement_plan,
)


def members(*ids):
    return [Member(i) for i in ids]


def net(balances):
    return {member_id: b.balance for member_id, b in balances.items()}


def assert_settles(balances, transfers, tolerance=Decimal("0.01")):
    for t in transfers:
        assert t.amount > 0
        assert t.from_id != t.to_id
    for member_id, remaining in apply_transfers(balances, transfers).items():
        assert abs(remaining) < tolerance, member_id


def test_scenario_single_payer():
    """Alice pays 90 for all three."""
    people = members("alice", "bob", "carol")
    expense = Expense(1, 90, "alice", equal_split(90, ["alice", "bob", "carol"]))

    plan = build_settlement_plan(people, [expense])

    assert net(plan.balances) == {"alice": 60, "bob": -30, "carol": -30}
    assert sorted((t.from_id, t.to_id, t.amount) for t in plan.transfers) == [
        ("bob", "alice", Decimal(30)),
        ("carol", "alice", Decimal(30)),
    ]
    assert plan.is_consistent


def test_scenario_two_payers_net_out():
    people = members("a", "b")
    expenses = [
        Expense(1, 100, "a", equal_split(100, ["a", "b"])),
        Expense(2, 40, "b", equal_split(40, ["a", "b"])),
    ]

    balances = compute_balances(people, expenses)

    assert balances["a"].total_paid == 100
    assert balances["a"].total_owed == 70
    assert net(balances) == {"a": 30, "b": -30}
    assert settle(balances) == [Transfer("b", "a", Decimal(30))]


def test_scenario_everyone_paid_own_share():
    people = members("a", "b", "c")
    expenses = [Expense(i, 25, m, [(m, 25)]) for i, m in enumerate(["a", "b", "c"])]

    plan = build_settlement_plan(people, expenses)

    assert all(b.balance == 0 for b in plan.balances.values())
    assert plan.transfers == []


def test_uneven_split_keeps_every_cent():
    shares = equal_split(10, ["a", "b", "c"])

    assert shares == [("a", Decimal("3.34")), ("b", Decimal("3.33")), ("c", Decimal("3.33"))]
    assert sum(share for _, share in shares) == Decimal(10)


def test_equal_split_with_sub_cent_amount():
    shares = equal_split(Decimal("0.05"), ["a", "b", "c", "d", "e", "f"])

    assert sum(share for _, share in shares) == Decimal("0.05")
    assert all(share >= 0 for _, share in shares)


def test_balances_sum_to_zero_over_many_expenses():
    rng = random.Random(7)
    ids = ["m%d" % i for i in range(8)]
    expenses = []
    for i in range(300):
        amount = Decimal(rng.randint(1, 100000)) / 100
        split = rng.sample(ids, rng.randint(1, len(ids)))
        expenses.append(Expense(i, amount, rng.choice(ids), equal_split(amount, split)))

    balances = compute_balances(members(*ids), expenses)

    assert sum(b.balance for b in balances.values()) == 0
    transfers = settle(balances)
    assert_settles(balances, transfers)
    assert len(transfers) <= len(ids) - 1


def test_arbitrary_shares():
    people = members("a", "b", "c")
    expense = Expense(1, "50.00", "a", [("a", "10.00"), ("b", "15.50"), ("c", "24.50")])

    plan = build_settlement_plan(people, [expense])

    assert net(plan.balances) == {"a": Decimal("40.00"), "b": Decimal("-15.50"), "c": Decimal("-24.50")}
    assert_settles(plan.balances, plan.transfers)


def test_payer_outside_split():
    people = members("a", "b", "c")
    expense = Expense(1, 60, "a", equal_split(60, ["b", "c"]))

    balances = compute_balances(people, [expense])

    assert net(balances) == {"a": 60, "b": -30, "c": -30}


def test_members_without_expenses_get_zero_balance():
    balances = compute_balances(members("a", "b", "lurker"), [Expense(1, 10, "a", equal_split(10, ["a", "b"]))])

    assert balances["lurker"].total_paid == 0
    assert balances["lurker"].total_owed == 0


def test_recomputation_is_stable():
    people = members("a", "b", "c", "d")
    expenses = [
        Expense(1, 120, "a", equal_split(120, ["a", "b", "c", "d"])),
        Expense(2, 45, "c", equal_split(45, ["b", "c"])),
        Expense(3, "19.99", "d", equal_split("19.99", ["a", "d"])),
    ]

    first = build_settlement_plan(people, expenses)
    second = build_settlement_plan(people, expenses)

    assert first.balances == second.balances
    assert first.transfers == second.transfers


def test_largest_first_matches_biggest_debts_first():
    balances = {"a": Decimal(-10), "b": Decimal(-50), "c": Decimal(20), "d": Decimal(40)}

    transfers = settle(balances)

    assert transfers[0] == Transfer("b", "d", Decimal(40))
    assert_settles(balances, transfers)


def test_insertion_order_follows_member_order():
    balances = {"a": Decimal(-10), "b": Decimal(-50), "c": Decimal(20), "d": Decimal(40)}

    transfers = settle(balances, order=SettleOrder.INSERTION)

    assert transfers[0] == Transfer("a", "c", Decimal(10))
    assert_settles(balances, transfers)


@pytest.mark.parametrize("order", list(SettleOrder))
def test_every_permutation_settles(order):
    values = [Decimal("-12.34"), Decimal("-0.66"), Decimal("5.00"), Decimal("8.00"), Decimal(0)]
    for perm in itertools.permutations(values):
        balances = {i: v for i, v in enumerate(perm)}
        assert_settles(balances, settle(balances, order=order))


def test_balances_within_tolerance_are_ignored():
    balances = {"a": Decimal("0.004"), "b": Decimal("-0.004")}

    assert settle(balances) == []


def test_inconsistent_balances_warn_and_report_residual():
    people = members("a", "b")
    # Shares add up to 80 for a 100 expense
    expense = Expense(1, 100, "a", [("a", 40), ("b", 40)])

    with pytest.warns(ConsistencyWarning):
        plan = build_settlement_plan(people, [expense])

    assert plan.transfers == [Transfer("b", "a", Decimal(40))]
    assert plan.residuals == {"a": Decimal(20)}
    assert not plan.is_consistent


def test_consistent_input_does_not_warn():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        build_settlement_plan(members("a", "b"), [Expense(1, 10, "a", equal_split(10, ["a", "b"]))])


@pytest.mark.parametrize("expense", [
    Expense(1, 10, "zed", [("a", 10)]),
    Expense(1, 10, "a", [("a", 5), ("zed", 5)]),
    Expense(1, 10, "a", []),
    Expense(1, 0, "a", [("a", 0)]),
    Expense(1, -5, "a", [("a", -5)]),
    Expense(1, 10, "a", [("a", 15), ("b", -5)]),
    Expense(1, 10, "a", [("a", 5), ("a", 5)]),
])
def test_malformed_expense_is_rejected(expense):
    with pytest.raises(ValidationError):
        compute_balances(members("a", "b"), [expense])


def test_bad_expense_rejects_whole_snapshot():
    good = Expense(1, 10, "a", equal_split(10, ["a", "b"]))
    bad = Expense(2, 10, "a", [("ghost", 10)])

    with pytest.raises(ValidationError) as exc_info:
        compute_balances(members("a", "b"), [good, bad])

    assert exc_info.value.expense_id == 2


def test_duplicate_member_ids_rejected():
    with pytest.raises(ValidationError):
        compute_balances([Member("a"), Member("a", "Other A")], [])


@pytest.mark.parametrize("amount, split", [(0, ["a"]), (10, []), (10, ["a", "a"]), ("abc", ["a"]), ("NaN", ["a"])])
def test_equal_split_rejects_bad_input(amount, split):
    with pytest.raises(ValidationError):
        equal_split(amount, split)


def test_float_amounts_do_not_drift():
    people = members("a", "b", "c")
    expenses = [Expense(i, 0.1, "a", equal_split(0.1, ["b"])) for i in range(30)]

    balances = compute_balances(people, expenses)

    assert balances["a"].balance == Decimal("3.0")
    assert balances["b"].balance == Decimal("-3.0")


@pytest.mark.parametrize("tolerance", [0, "-0.01"])
def test_non_positive_tolerance_rejected(tolerance):
    balances = {"a": Decimal(30), "b": Decimal(-30)}

    with pytest.raises(ValidationError):
        settle(balances, tolerance=tolerance)
    with pytest.raises(ValidationError):
        build_settlement_plan(members("a", "b"), [Expense(1, 10, "a", equal_split(10, ["a", "b"]))], tolerance=tolerance)


def test_tiny_tolerance_still_terminates():
    balances = {"a": Decimal(30), "b": Decimal(-10), "c": Decimal(-20)}

    transfers = settle(balances, tolerance="0.0000001")

    assert len(transfers) == 2
    assert_settles(balances, transfers)


def test_settings_reject_zero_tolerance():
    with pytest.raises(SettingsError):
        Settings(SETTLEMENT_TOLERANCE=Decimal(0))
