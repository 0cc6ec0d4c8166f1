from decimal import Decimal

import pytest

from hisaab.core.balances import (
    ExpenseFact,
    GroupFacts,
    MultiPayer,
    PayerContribution,
    SettlementFact,
    SinglePayer,
    compute_balances,
    ensure_settled,
    member_balance,
)
from hisaab.core.enums import ExpenseStatus
from hisaab.core.errors import OutstandingBalance
from hisaab.core.splits import ShareAmount

D = Decimal


def shares(**amounts):
    return tuple(ShareAmount(int(k[1:]), D(v)) for k, v in amounts.items())


def dinner(expense_id=1, status=ExpenseStatus.ACTIVE):
    # member 1 pays 90, split three ways
    return ExpenseFact(
        expense_id=expense_id,
        amount=D("90"),
        payment=SinglePayer(1),
        shares=shares(m1="30", m2="30", m3="30"),
        status=status,
    )


def by_member(balances):
    return {b.member_id: b.balance for b in balances}


def test_single_payer_expense():
    facts = GroupFacts(member_ids=(1, 2, 3), expenses=(dinner(),))

    balances = compute_balances(facts)

    assert [b.member_id for b in balances] == [1, 2, 3]
    assert by_member(balances) == {1: D("60.00"), 2: D("-30.00"), 3: D("-30.00")}
    assert balances[0].total_paid == D("90.00")
    assert balances[0].total_owed == D("30.00")


def test_multiple_payers():
    taxi = ExpenseFact(
        expense_id=2,
        amount=D("100"),
        payment=MultiPayer((PayerContribution(1, D("60")), PayerContribution(2, D("40")))),
        shares=shares(m1="25", m2="25", m3="50"),
    )
    facts = GroupFacts(member_ids=(1, 2, 3), expenses=(taxi,))

    assert by_member(compute_balances(facts)) == {1: D("35.00"), 2: D("15.00"), 3: D("-50.00")}


def test_deleted_expenses_do_not_count():
    facts = GroupFacts(
        member_ids=(1, 2, 3),
        expenses=(dinner(1), dinner(2, status=ExpenseStatus.DELETED)),
    )

    assert by_member(compute_balances(facts)) == {1: D("60.00"), 2: D("-30.00"), 3: D("-30.00")}


def test_settlements_offset_balances():
    facts = GroupFacts(
        member_ids=(1, 2, 3),
        expenses=(dinner(),),
        settlements=(SettlementFact(2, 1, D("30")), SettlementFact(3, 1, D("10"))),
    )

    balances = compute_balances(facts)

    assert by_member(balances) == {1: D("20.00"), 2: D("0.00"), 3: D("-20.00")}
    assert balances[0].net_settlements == D("-40.00")
    assert balances[1].settlements_paid == D("30.00")


def test_removed_payer_contributes_nothing():
    orphan = ExpenseFact(
        expense_id=3,
        amount=D("20"),
        payment=SinglePayer(None),
        shares=shares(m1="10", m2="10"),
    )
    facts = GroupFacts(member_ids=(1, 2), expenses=(orphan,))

    assert by_member(compute_balances(facts)) == {1: D("-10.00"), 2: D("-10.00")}


def test_only_listed_members_are_reported():
    facts = GroupFacts(member_ids=(2, 1), expenses=(dinner(),))

    assert [b.member_id for b in compute_balances(facts)] == [2, 1]


def test_member_without_activity_is_settled():
    facts = GroupFacts(member_ids=(1, 2, 3, 4), expenses=(dinner(),))

    assert member_balance(facts, 4) == D("0.00")


def test_compute_balances_is_idempotent():
    facts = GroupFacts(
        member_ids=(1, 2, 3),
        expenses=(dinner(),),
        settlements=(SettlementFact(2, 1, D("12.34")),),
    )

    assert compute_balances(facts) == compute_balances(facts)


def test_settled_member_can_be_removed():
    facts = GroupFacts(
        member_ids=(1, 2, 3),
        expenses=(dinner(),),
        settlements=(SettlementFact(2, 1, D("30")),),
    )

    assert ensure_settled(facts, 2) == D("0.00")


def test_member_with_balance_cannot_be_removed():
    facts = GroupFacts(
        member_ids=(1, 2),
        expenses=(ExpenseFact(1, D("30"), SinglePayer(1), shares(m1="15", m2="15")),),
    )

    with pytest.raises(OutstandingBalance) as exc:
        ensure_settled(facts, 1)

    assert exc.value.balance == D("15.00")
    assert exc.value.to_dict()["balance"] == "15.00"


def test_a_cent_counts_as_settled():
    facts = GroupFacts(
        member_ids=(1, 2),
        expenses=(ExpenseFact(1, D("0.02"), SinglePayer(1), shares(m1="0.01", m2="0.01")),),
    )

    assert ensure_settled(facts, 2) == D("-0.01")
