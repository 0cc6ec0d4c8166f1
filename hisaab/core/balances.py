from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterator, List, Optional, Tuple, Union

from hisaab.core.enums import ExpenseStatus
from hisaab.core.errors import OutstandingBalance
from hisaab.core.splits import ShareAmount
from hisaab.core.utils import EPSILON, qround


@dataclass(frozen=True)
class SinglePayer:
    # None once the paying member has been removed from the group
    member_id: Optional[int]


@dataclass(frozen=True)
class PayerContribution:
    member_id: int
    paid_amount: Decimal


@dataclass(frozen=True)
class MultiPayer:
    payers: Tuple[PayerContribution, ...]


Payment = Union[SinglePayer, MultiPayer]


@dataclass(frozen=True)
class ExpenseFact:
    expense_id: int
    amount: Decimal
    payment: Payment
    shares: Tuple[ShareAmount, ...] = ()
    status: ExpenseStatus = ExpenseStatus.ACTIVE


@dataclass(frozen=True)
class SettlementFact:
    from_member: int
    to_member: int
    amount: Decimal


@dataclass(frozen=True)
class GroupFacts:
    """Everything the balance calculation needs to know about one group."""

    member_ids: Tuple[int, ...]
    expenses: Tuple[ExpenseFact, ...] = ()
    settlements: Tuple[SettlementFact, ...] = ()


@dataclass(frozen=True)
class MemberBalance:
    member_id: int
    total_paid: Decimal
    total_owed: Decimal
    settlements_received: Decimal
    settlements_paid: Decimal

    @property
    def net_settlements(self) -> Decimal:
        # Paying a settlement works off debt, receiving one uses up credit
        return qround(self.settlements_paid - self.settlements_received)

    @property
    def balance(self) -> Decimal:
        return qround(self.total_paid - self.total_owed + self.net_settlements)


def paid_contributions(expense: ExpenseFact) -> Iterator[Tuple[int, Decimal]]:
    payment = expense.payment
    if isinstance(payment, MultiPayer):
        for payer in payment.payers:
            yield payer.member_id, payer.paid_amount
    elif payment.member_id is not None:
        yield payment.member_id, expense.amount


def _aggregate(facts: GroupFacts) -> Dict[str, Dict[int, Decimal]]:
    paid: Dict[int, Decimal] = defaultdict(Decimal)
    owed: Dict[int, Decimal] = defaultdict(Decimal)
    received: Dict[int, Decimal] = defaultdict(Decimal)
    sent: Dict[int, Decimal] = defaultdict(Decimal)

    for expense in facts.expenses:
        if expense.status is not ExpenseStatus.ACTIVE:
            continue
        for member_id, amount in paid_contributions(expense):
            paid[member_id] += amount
        for share in expense.shares:
            owed[share.member_id] += share.share_amount

    for settlement in facts.settlements:
        received[settlement.to_member] += settlement.amount
        sent[settlement.from_member] += settlement.amount

    return {"paid": paid, "owed": owed, "received": received, "sent": sent}


def _balance_for(totals: Dict[str, Dict[int, Decimal]], member_id: int) -> MemberBalance:
    return MemberBalance(
        member_id=member_id,
        total_paid=qround(totals["paid"][member_id]),
        total_owed=qround(totals["owed"][member_id]),
        settlements_received=qround(totals["received"][member_id]),
        settlements_paid=qround(totals["sent"][member_id]),
    )


def compute_balances(facts: GroupFacts) -> List[MemberBalance]:
    """Net balance of every group member, in membership order.

    Only active expenses count; settlements always do. Positive means the
    rest of the group owes the member.
    """
    totals = _aggregate(facts)
    return [_balance_for(totals, member_id) for member_id in facts.member_ids]


def member_balance(facts: GroupFacts, member_id: int) -> Decimal:
    return _balance_for(_aggregate(facts), member_id).balance


def ensure_settled(facts: GroupFacts, member_id: int) -> Decimal:
    balance = member_balance(facts, member_id)
    if abs(balance) > EPSILON:
        raise OutstandingBalance(member_id, balance)
    return balance
