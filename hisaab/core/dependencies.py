from fastapi import Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from hisaab.core.config import Settings
from hisaab.core.enums import MemberRole
from hisaab.core.jwt_config import decode_token, get_token_from_request
from hisaab.models.group_member import GroupMember
from hisaab.services.user_service import get_user_by_id

def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings

async def get_db(request: Request):
    async with request.app.state.sessionmaker() as session:
        yield session

async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    token = get_token_from_request(request)
    payload = decode_token(token, settings)
    user_id = payload.get("sub")

    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")

    try:
        user = await get_user_by_id(db, int(user_id))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")

    if user is None:
        raise HTTPException(status_code=401, detail="User not found")

    return user

async def get_membership(db: AsyncSession, group_id: int, user_id: int):
    q = select(GroupMember).where(
        GroupMember.group_id == group_id,
        GroupMember.user_id == user_id
    )
    res = await db.execute(q)
    return res.scalar_one_or_none()

async def check_group_membership(db: AsyncSession, group_id: int, user_id: int) -> GroupMember:
    member = await get_membership(db, group_id, user_id)
    if not member:
        raise HTTPException(status_code=403, detail="Access denied to this group")
    return member

async def check_group_admin(db: AsyncSession, group_id: int, user_id: int) -> GroupMember:
    member = await get_membership(db, group_id, user_id)
    if not member or member.role is not MemberRole.ADMIN:
        raise HTTPException(status_code=403, detail="Only group admins can do this")
    return member

async def group_member(
    group_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
) -> GroupMember:
    return await check_group_membership(db, group_id, current_user.id)
