import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from hisaab.core.errors import InvalidAmount, InvalidSplitMethod, SplitMismatch
from hisaab.core.utils import CENTS, EPSILON, ZERO, money, qround, to_decimal


class SplitMethod(str, enum.Enum):
    EQUAL = "equal"
    EXACT = "exact"
    PERCENTAGE = "percentage"


@dataclass(frozen=True)
class ShareAmount:
    member_id: int
    share_amount: Decimal


def compute_shares(
    amount,
    method,
    member_ids: Sequence[int],
    exact_amounts: Optional[Dict] = None,
    percentages: Optional[Sequence] = None,
) -> List[ShareAmount]:
    """Split ``amount`` between members according to ``method``.

    ``equal`` and ``percentage`` round each share half-up to cents, then hand
    the rounding remainder out a cent at a time starting from the last
    member, so the result sums to ``amount`` exactly. ``exact`` passes the caller's amounts through and only
    checks the total.

    Raises InvalidSplitMethod for an unknown method, InvalidAmount unless
    ``amount`` is positive and SplitMismatch when the shares cannot add up to
    ``amount``.
    """
    try:
        method = SplitMethod(method)
    except ValueError:
        raise InvalidSplitMethod(method) from None

    amount = to_decimal(amount)
    if amount <= ZERO:
        raise InvalidAmount(amount)

    if method is SplitMethod.EXACT:
        shares = _exact_shares(exact_amounts or {})
        _check_total(amount, shares, EPSILON)
        return shares

    if method is SplitMethod.EQUAL:
        shares = _equal_shares(amount, member_ids)
    else:
        shares = _percentage_shares(amount, member_ids, percentages or [])

    # each rounded share is off by at most half a cent
    _check_total(amount, shares, EPSILON * len(shares))
    return _absorb_remainder(amount, shares)


def _equal_shares(amount: Decimal, member_ids: Sequence[int]) -> List[ShareAmount]:
    if not member_ids:
        return []
    per_head = qround(amount / len(member_ids))
    return [ShareAmount(member_id, per_head) for member_id in member_ids]


def _percentage_shares(amount: Decimal, member_ids: Sequence[int], percentages: Sequence) -> List[ShareAmount]:
    shares = []
    for index, member_id in enumerate(member_ids):
        pct = to_decimal(percentages[index]) if index < len(percentages) else ZERO
        shares.append(ShareAmount(member_id, qround(amount * pct / 100)))
    return shares


def _exact_shares(exact_amounts: Dict) -> List[ShareAmount]:
    return [
        ShareAmount(_member_key(member_id), money(value))
        for member_id, value in exact_amounts.items()
    ]


def _member_key(member_id):
    # JSON object keys arrive as strings
    if isinstance(member_id, str) and member_id.isdigit():
        return int(member_id)
    return member_id


def _total(shares: Sequence[ShareAmount]) -> Decimal:
    return sum((s.share_amount for s in shares), ZERO)


def _check_total(amount: Decimal, shares: Sequence[ShareAmount], tolerance: Decimal):
    total = _total(shares)
    if not shares or abs(total - amount) > tolerance:
        raise SplitMismatch(qround(amount), qround(total))


def _absorb_remainder(amount: Decimal, shares: List[ShareAmount]) -> List[ShareAmount]:
    # One cent at a time from the last member backwards, never below zero
    remainder = qround(amount - _total(shares))
    step = CENTS if remainder > 0 else -CENTS
    while remainder:
        moved = False
        for index in range(len(shares) - 1, -1, -1):
            if not remainder:
                break
            share = shares[index]
            if share.share_amount + step >= 0:
                shares[index] = ShareAmount(share.member_id, share.share_amount + step)
                remainder -= step
                moved = True
        if not moved:
            raise SplitMismatch(qround(amount), qround(_total(shares)))
    return shares
