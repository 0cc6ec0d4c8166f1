import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, update, func, or_
from fastapi import HTTPException
from hisaab.core.balances import ensure_settled
from hisaab.core.dependencies import check_group_admin, get_membership
from hisaab.core.enums import ExpenseStatus, MemberRole
from hisaab.core.errors import OutstandingBalance
from hisaab.models.expense import Expense
from hisaab.models.expense_payer import ExpensePayer
from hisaab.models.expense_share import ExpenseShare
from hisaab.models.group import Group
from hisaab.models.group_member import GroupMember
from hisaab.models.settlement import Settlement
from hisaab.models.user import User
from hisaab.services.balance_services import load_group_facts
from hisaab.services.user_service import get_user_by_email

logger = logging.getLogger(__name__)

async def create_group(db: AsyncSession, name: str, creator_id: int, description: str | None = None):
    group = Group(name=name.strip(), description=(description or "").strip(), created_by=creator_id)
    db.add(group)
    await db.flush()

    member = GroupMember(group_id=group.id, user_id=creator_id, role=MemberRole.ADMIN)
    db.add(member)

    await db.commit()
    await db.refresh(group)
    logger.info("Group %s created by user %s", group.id, creator_id)
    return group

async def list_group_for_user(db: AsyncSession, user_id: int):
    mine = select(GroupMember.group_id).where(GroupMember.user_id == user_id)
    q = (
        select(Group, func.count(GroupMember.user_id).label("member_count"))
        .join(GroupMember, GroupMember.group_id == Group.id)
        .where(Group.id.in_(mine))
        .group_by(Group.id)
        .order_by(Group.created_at.desc(), Group.id.desc())
    )
    result = await db.execute(q)

    return [
        {
            "id": row.Group.id,
            "name": row.Group.name,
            "description": row.Group.description,
            "created_by": row.Group.created_by,
            "created_at": row.Group.created_at,
            "member_count": row.member_count,
        }
        for row in result.all()
    ]

async def get_group_detail(db: AsyncSession, group_id: int):
    group = await db.get(Group, group_id)

    if not group:
        raise HTTPException(404, "Group not found")

    members_q = (
        select(User.id, User.name, User.email, GroupMember.role)
        .join(GroupMember, User.id == GroupMember.user_id)
        .where(GroupMember.group_id == group_id)
        .order_by(GroupMember.joined_at, GroupMember.id)
    )
    result = await db.execute(members_q)

    return {
        "group": group,
        "members": [
            {"id": uid, "name": name, "email": email, "role": role}
            for uid, name, email, role in result.all()
        ],
    }

async def add_member(db: AsyncSession, group_id: int, email: str, actor_id: int):
    await check_group_admin(db, group_id, actor_id)

    user = await get_user_by_email(db, email)

    if not user:
        raise HTTPException(404, "User not found")

    if await get_membership(db, group_id, user.id):
        raise HTTPException(409, "User is already a member")

    db.add(GroupMember(group_id=group_id, user_id=user.id, role=MemberRole.MEMBER))
    await db.commit()

    logger.info("User %s added to group %s by user %s", user.id, group_id, actor_id)
    return {"message": "Member added successfully", "user_id": user.id}

async def _ensure_settled(db: AsyncSession, group_id: int, member_id: int):
    facts = await load_group_facts(db, group_id)
    try:
        ensure_settled(facts, member_id)
    except OutstandingBalance as e:
        logger.warning("Refused to remove user %s from group %s: balance %s", member_id, group_id, e.balance)
        raise

async def _purge_member(db: AsyncSession, group_id: int, member_id: int):
    """Drop every trace of a member from one group's ledger in one transaction."""
    group_expenses = select(Expense.id).where(Expense.group_id == group_id)

    try:
        await db.execute(
            delete(ExpenseShare)
            .where(
                ExpenseShare.user_id == member_id,
                ExpenseShare.expense_id.in_(group_expenses)
            )
            .execution_options(synchronize_session=False)
        )

        await db.execute(
            delete(ExpensePayer)
            .where(
                ExpensePayer.user_id == member_id,
                ExpensePayer.expense_id.in_(group_expenses)
            )
            .execution_options(synchronize_session=False)
        )

        await db.execute(
            update(Expense)
            .where(
                Expense.group_id == group_id,
                Expense.paid_by == member_id,
                Expense.status == ExpenseStatus.ACTIVE
            )
            .values(paid_by=None)
            .execution_options(synchronize_session=False)
        )

        await db.execute(
            delete(Settlement)
            .where(
                Settlement.group_id == group_id,
                or_(Settlement.from_user == member_id, Settlement.to_user == member_id)
            )
            .execution_options(synchronize_session=False)
        )

        await db.execute(
            delete(GroupMember)
            .where(
                GroupMember.group_id == group_id,
                GroupMember.user_id == member_id
            )
            .execution_options(synchronize_session=False)
        )

        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Rolled back removal of user %s from group %s", member_id, group_id)
        raise

async def remove_member(db: AsyncSession, group_id: int, member_id: int, actor_id: int):
    await check_group_admin(db, group_id, actor_id)

    if member_id == actor_id:
        raise HTTPException(400, "Cannot remove yourself from group")

    if not await get_membership(db, group_id, member_id):
        raise HTTPException(404, "User is not a member of this group")

    await _ensure_settled(db, group_id, member_id)
    await _purge_member(db, group_id, member_id)

    logger.info("User %s removed from group %s by user %s", member_id, group_id, actor_id)
    return {"message": "Member removed successfully"}

async def exit_group(db: AsyncSession, group_id: int, user_id: int):
    group = await db.get(Group, group_id)

    if not group:
        raise HTTPException(404, "Group not found")

    if group.created_by == user_id:
        raise HTTPException(400, "Group owner cannot exit the group")

    if not await get_membership(db, group_id, user_id):
        raise HTTPException(404, "You are not a member of this group")

    await _ensure_settled(db, group_id, user_id)
    await _purge_member(db, group_id, user_id)

    logger.info("User %s left group %s", user_id, group_id)
    return {"message": "Left group successfully"}
