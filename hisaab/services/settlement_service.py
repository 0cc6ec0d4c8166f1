import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import aliased
from fastapi import HTTPException
from hisaab.core.dependencies import check_group_membership, get_membership
from hisaab.core.utils import money
from hisaab.models.settlement import Settlement
from hisaab.models.user import User
from hisaab.schemas.settlements import SettlementCreate

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "Settlement payment"

async def add_settlement(db: AsyncSession, group_id: int, from_user: int, data: SettlementCreate):
    await check_group_membership(db, group_id, from_user)

    if data.to_user == from_user:
        raise HTTPException(400, "Cannot settle with yourself")

    if not await get_membership(db, group_id, data.to_user):
        raise HTTPException(400, "Recipient is not a member of this group")

    settlement = Settlement(
        group_id=group_id,
        from_user=from_user,
        to_user=data.to_user,
        amount=money(data.amount),
        description=(data.description or "").strip() or DEFAULT_DESCRIPTION
    )
    db.add(settlement)

    try:
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Could not record settlement in group %s", group_id)
        raise

    await db.refresh(settlement)
    logger.info(
        "Settlement %s: user %s paid user %s %s in group %s",
        settlement.id, from_user, data.to_user, settlement.amount, group_id
    )
    return settlement

async def get_settlement_history(db: AsyncSession, group_id: int):
    from_u = aliased(User)
    to_u = aliased(User)

    q = (
        select(
            Settlement,
            from_u.name.label("from_user_name"),
            to_u.name.label("to_user_name")
        )
        .join(from_u, from_u.id == Settlement.from_user)
        .join(to_u, to_u.id == Settlement.to_user)
        .where(Settlement.group_id == group_id)
        .order_by(Settlement.created_at.desc(), Settlement.id.desc())
    )

    res = await db.execute(q)

    return [
        {
            "id": row.Settlement.id,
            "group_id": row.Settlement.group_id,
            "from_user": row.Settlement.from_user,
            "from_user_name": row.from_user_name,
            "to_user": row.Settlement.to_user,
            "to_user_name": row.to_user_name,
            "amount": money(row.Settlement.amount),
            "description": row.Settlement.description,
            "created_at": row.Settlement.created_at,
        }
        for row in res.all()
    ]
