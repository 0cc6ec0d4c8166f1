from dataclasses import dataclass
from decimal import Decimal
from typing import Hashable, Iterable, List, Tuple

from hisaab.core.utils import EPSILON, money, qround


@dataclass(frozen=True)
class Transfer:
    from_member: Hashable
    to_member: Hashable
    amount: Decimal


def simplify(balances: Iterable[Tuple[Hashable, object]]) -> List[Transfer]:
    """Turn net balances into a short list of debtor -> creditor transfers.

    Greedy: the largest remaining debtor always pays the largest remaining
    creditor. Both sides are sorted with a stable sort, so members with equal
    balances keep their input order and the output is deterministic.
    Balances within a cent of zero are ignored.
    """
    creditors = []
    debtors = []

    for member_id, balance in balances:
        amount = money(balance)
        if amount > EPSILON:
            creditors.append([member_id, amount])
        elif amount < -EPSILON:
            debtors.append([member_id, -amount])

    creditors.sort(key=lambda x: x[1], reverse=True)
    debtors.sort(key=lambda x: x[1], reverse=True)

    transfers: List[Transfer] = []
    c = d = 0

    while c < len(creditors) and d < len(debtors):
        creditor = creditors[c]
        debtor = debtors[d]

        pay_amt = qround(min(creditor[1], debtor[1]))
        transfers.append(Transfer(debtor[0], creditor[0], pay_amt))

        creditor[1] -= pay_amt
        debtor[1] -= pay_amt

        if creditor[1] < EPSILON:
            c += 1
        if debtor[1] < EPSILON:
            d += 1

    return transfers
