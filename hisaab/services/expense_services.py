import logging
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from fastapi import HTTPException
from hisaab.core.dependencies import check_group_membership, get_membership
from hisaab.core.enums import ExpenseStatus, MemberRole, PayerMode
from hisaab.core.errors import SplitMismatch
from hisaab.core.utils import EPSILON, ZERO, money
from hisaab.models.expense import Expense
from hisaab.models.expense_payer import ExpensePayer
from hisaab.models.expense_share import ExpenseShare
from hisaab.models.group import Group
from hisaab.models.group_member import GroupMember
from hisaab.models.user import User
from hisaab.schemas.expense import ExpenseCreate

logger = logging.getLogger(__name__)

def _check_sum(amount: Decimal, parts, what: str):
    total = sum((money(p) for p in parts), ZERO)
    if abs(total - amount) > EPSILON:
        raise SplitMismatch(amount, total, what=what)

async def create_expense(db: AsyncSession, data: ExpenseCreate, actor_id: int):
    await check_group_membership(db, data.group_id, actor_id)

    amount = money(data.amount)
    share_user_ids = [s.user_id for s in data.shares]

    if len(share_user_ids) != len(set(share_user_ids)):
        raise HTTPException(400, "Duplicate users found in shares")

    if data.payers:
        payer_mode = PayerMode.MULTIPLE
        paid_by = None
        payer_user_ids = [p.user_id for p in data.payers]
        if len(payer_user_ids) != len(set(payer_user_ids)):
            raise HTTPException(400, "Duplicate users found in payers")
    else:
        payer_mode = PayerMode.SINGLE
        paid_by = data.paid_by if data.paid_by is not None else actor_id
        payer_user_ids = [paid_by]

    _check_sum(amount, [s.share_amount for s in data.shares], "Shares")
    if data.payers:
        _check_sum(amount, [p.paid_amount for p in data.payers], "Payers")

    involved = set(share_user_ids) | set(payer_user_ids)
    q = select(GroupMember.user_id).where(
        GroupMember.group_id == data.group_id,
        GroupMember.user_id.in_(involved)
    )
    members = set((await db.execute(q)).scalars().all())

    if members != involved:
        raise HTTPException(400, "Some users in this expense are not group members")

    try:
        expense = Expense(
            group_id=data.group_id,
            paid_by=paid_by,
            payer_mode=payer_mode,
            created_by=actor_id,
            amount=amount,
            description=data.description.strip(),
            status=ExpenseStatus.ACTIVE,
        )
        db.add(expense)
        await db.flush()  # gives expense.id

        for p in data.payers or []:
            db.add(ExpensePayer(
                expense_id=expense.id,
                user_id=p.user_id,
                paid_amount=money(p.paid_amount)
            ))

        for s in data.shares:
            db.add(ExpenseShare(
                expense_id=expense.id,
                user_id=s.user_id,
                share_amount=money(s.share_amount)
            ))

        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Rolled back expense creation in group %s", data.group_id)
        raise

    logger.info("Expense %s of %s added to group %s by user %s", expense.id, amount, data.group_id, actor_id)
    return await get_expense_by_id(db, expense.id, actor_id)

async def _load_expense(db: AsyncSession, expense_id: int):
    q = (
        select(Expense)
        .options(selectinload(Expense.shares), selectinload(Expense.payers))
        .where(Expense.id == expense_id)
        .execution_options(populate_existing=True)
    )
    res = await db.execute(q)
    return res.scalar_one_or_none()

async def _names(db: AsyncSession, user_ids):
    if not user_ids:
        return {}
    res = await db.execute(select(User.id, User.name).where(User.id.in_(set(user_ids))))
    return {uid: name for uid, name in res.all()}

def _expense_dict(expense: Expense, names):
    return {
        "id": expense.id,
        "group_id": expense.group_id,
        "description": expense.description,
        "amount": money(expense.amount),
        "payer_mode": expense.payer_mode,
        "paid_by": expense.paid_by,
        "paid_by_name": names.get(expense.paid_by),
        "created_by": expense.created_by,
        "created_at": expense.created_at,
        "payers": [
            {"user_id": p.user_id, "name": names.get(p.user_id), "paid_amount": money(p.paid_amount)}
            for p in sorted(expense.payers, key=lambda p: p.id)
        ],
        "shares": [
            {"user_id": s.user_id, "name": names.get(s.user_id), "share_amount": money(s.share_amount)}
            for s in sorted(expense.shares, key=lambda s: s.id)
        ],
    }

def _people(expense: Expense):
    return [expense.paid_by] + [p.user_id for p in expense.payers] + [s.user_id for s in expense.shares]

async def get_expense_by_id(db: AsyncSession, expense_id: int, user_id: int):
    expense = await _load_expense(db, expense_id)

    if not expense or expense.status is not ExpenseStatus.ACTIVE:
        raise HTTPException(404, "Expense not found")

    await check_group_membership(db, expense.group_id, user_id)

    names = await _names(db, [uid for uid in _people(expense) if uid is not None])
    return _expense_dict(expense, names)

async def list_group_expenses(db: AsyncSession, group_id: int, user_id: int):
    q = (
        select(Expense)
        .options(selectinload(Expense.shares), selectinload(Expense.payers))
        .where(
            Expense.group_id == group_id,
            Expense.status == ExpenseStatus.ACTIVE
        )
        .order_by(Expense.created_at.desc(), Expense.id.desc())
        .execution_options(populate_existing=True)
    )
    expenses = (await db.execute(q)).scalars().all()

    people = [uid for e in expenses for uid in _people(e) if uid is not None]
    names = await _names(db, people)

    result = []
    for expense in expenses:
        item = _expense_dict(expense, names)

        user_share = next(
            (s["share_amount"] for s in item["shares"] if s["user_id"] == user_id), ZERO
        )
        if expense.payer_mode is PayerMode.MULTIPLE:
            user_paid = next(
                (p["paid_amount"] for p in item["payers"] if p["user_id"] == user_id), ZERO
            )
        else:
            user_paid = item["amount"] if expense.paid_by == user_id else ZERO

        item["user_share"] = user_share
        item["user_paid"] = user_paid
        item["user_status"] = "lent" if user_paid > user_share else "borrowed"
        result.append(item)

    return result

async def delete_expense(db: AsyncSession, expense_id: int, user_id: int):
    q = select(Expense).where(Expense.id == expense_id)
    res = await db.execute(q)
    expense = res.scalar_one_or_none()

    if not expense or expense.status is not ExpenseStatus.ACTIVE:
        raise HTTPException(404, "Expense not found or access denied")

    member = await get_membership(db, expense.group_id, user_id)
    if not member:
        raise HTTPException(404, "Expense not found or access denied")

    group = await db.get(Group, expense.group_id)

    allowed = (
        expense.paid_by == user_id
        or expense.created_by == user_id
        or member.role is MemberRole.ADMIN
        or group.created_by == user_id
    )
    if not allowed:
        raise HTTPException(403, "Only the expense creator or group admin can delete expenses")

    expense.status = ExpenseStatus.DELETED
    await db.commit()

    logger.info("Expense %s deleted by user %s", expense_id, user_id)
    return {"message": "Expense deleted successfully"}
