from decimal import Decimal
from typing import Dict, Tuple
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from hisaab.core.balances import (
    ExpenseFact,
    GroupFacts,
    MultiPayer,
    PayerContribution,
    SettlementFact,
    SinglePayer,
    compute_balances,
)
from hisaab.core.enums import ExpenseStatus, PayerMode
from hisaab.core.simplify import simplify
from hisaab.core.splits import ShareAmount
from hisaab.core.utils import ZERO, money, qround
from hisaab.models.expense import Expense
from hisaab.models.group_member import GroupMember
from hisaab.models.settlement import Settlement
from hisaab.models.user import User

def expense_to_fact(expense: Expense) -> ExpenseFact:
    if expense.payer_mode is PayerMode.MULTIPLE:
        payment = MultiPayer(tuple(
            PayerContribution(p.user_id, money(p.paid_amount)) for p in expense.payers
        ))
    else:
        payment = SinglePayer(expense.paid_by)

    return ExpenseFact(
        expense_id=expense.id,
        amount=money(expense.amount),
        payment=payment,
        shares=tuple(ShareAmount(s.user_id, money(s.share_amount)) for s in expense.shares),
        status=expense.status,
    )

async def load_group_facts(db: AsyncSession, group_id: int) -> GroupFacts:
    # All three reads run in the session's current transaction
    members_q = (
        select(GroupMember.user_id)
        .where(GroupMember.group_id == group_id)
        .order_by(GroupMember.joined_at, GroupMember.id)
    )
    member_ids = tuple((await db.execute(members_q)).scalars().all())

    expenses_q = (
        select(Expense)
        .options(selectinload(Expense.shares), selectinload(Expense.payers))
        .where(
            Expense.group_id == group_id,
            Expense.status == ExpenseStatus.ACTIVE
        )
        .order_by(Expense.id)
        .execution_options(populate_existing=True)
    )
    expenses = (await db.execute(expenses_q)).scalars().all()

    settlements_q = (
        select(Settlement.from_user, Settlement.to_user, Settlement.amount)
        .where(Settlement.group_id == group_id)
        .order_by(Settlement.id)
    )
    settlements = (await db.execute(settlements_q)).all()

    return GroupFacts(
        member_ids=member_ids,
        expenses=tuple(expense_to_fact(e) for e in expenses),
        settlements=tuple(
            SettlementFact(from_user, to_user, money(amount))
            for from_user, to_user, amount in settlements
        ),
    )

async def _member_directory(db: AsyncSession, group_id: int) -> Dict[int, Tuple[str, str]]:
    q = (
        select(User.id, User.name, User.email)
        .join(GroupMember, GroupMember.user_id == User.id)
        .where(GroupMember.group_id == group_id)
    )
    res = await db.execute(q)
    return {uid: (name, email) for uid, name, email in res.all()}

async def get_group_balances(db: AsyncSession, group_id: int):
    facts = await load_group_facts(db, group_id)
    users = await _member_directory(db, group_id)

    balances = compute_balances(facts)
    transfers = simplify((b.member_id, b.balance) for b in balances)

    def name_of(uid):
        return users.get(uid, (None, None))[0]

    return {
        "balances": [
            {"user_id": b.member_id, "name": name_of(b.member_id), "balance": b.balance}
            for b in balances
        ],
        "simplified": [
            {
                "from_id": t.from_member, "from_name": name_of(t.from_member),
                "to_id": t.to_member, "to_name": name_of(t.to_member),
                "amount": t.amount
            }
            for t in transfers
        ],
    }

def _status(balance: Decimal) -> str:
    if balance > 0:
        return "owed"
    if balance < 0:
        return "owes"
    return "settled"

async def get_total_balances(db: AsyncSession, group_id: int):
    facts = await load_group_facts(db, group_id)
    users = await _member_directory(db, group_id)

    total_expenses = qround(sum((e.amount for e in facts.expenses), ZERO))

    members = []
    for b in compute_balances(facts):
        name, email = users.get(b.member_id, (None, None))
        members.append({
            "user_id": b.member_id,
            "name": name,
            "email": email,
            "total_paid": b.total_paid,
            "total_owed": b.total_owed,
            "net_settlements": b.net_settlements,
            "current_balance": b.balance,
            "balance_status": _status(b.balance),
        })

    members.sort(key=lambda m: (m["name"] or "").lower())

    return {"total_expenses": total_expenses, "members": members}
