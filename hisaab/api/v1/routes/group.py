from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from hisaab.core.dependencies import get_db, get_current_user, group_member
from hisaab.schemas.balances import GroupBalanceOut, TotalBalancesOut
from hisaab.schemas.expense import GroupExpenseOut
from hisaab.schemas.group import AddMemberIn, GroupCreate, GroupDetailOut, GroupListOut, GroupOut
from hisaab.schemas.settlements import SettlementCreate, SettlementOut
from hisaab.services.balance_services import get_group_balances, get_total_balances
from hisaab.services.expense_services import list_group_expenses
from hisaab.services.group_services import (
    add_member,
    create_group,
    exit_group,
    get_group_detail,
    list_group_for_user,
    remove_member,
)
from hisaab.services.settlement_service import add_settlement, get_settlement_history

router = APIRouter()

@router.post("/", response_model=GroupOut, status_code=201, description="create new group")
async def create_new_group(
    data: GroupCreate,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user)
):
    return await create_group(db, data.name, user.id, data.description)

@router.get("/", response_model=list[GroupListOut], description="get user groups")
async def my_groups(db: AsyncSession = Depends(get_db), user = Depends(get_current_user)):
    return await list_group_for_user(db, user.id)

@router.get("/{group_id}", response_model=GroupDetailOut, dependencies=[Depends(group_member)])
async def group_detail(group_id: int, db: AsyncSession = Depends(get_db)):
    return await get_group_detail(db, group_id)

@router.post("/{group_id}/members", status_code=201)
async def add_user_to_group(
    group_id: int,
    data: AddMemberIn,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await add_member(db, group_id, data.email, current_user.id)

@router.delete("/{group_id}/members/{member_id}")
async def rem_mem(group_id: int, member_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await remove_member(db, group_id=group_id, member_id=member_id, actor_id=current_user.id)

@router.delete("/{group_id}/exit")
async def leave_group(group_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await exit_group(db, group_id=group_id, user_id=current_user.id)

@router.get("/{group_id}/balances", response_model=GroupBalanceOut, dependencies=[Depends(group_member)])
async def group_balances(group_id: int, db: AsyncSession = Depends(get_db)):
    return await get_group_balances(db, group_id)

@router.get("/{group_id}/total-balances", response_model=TotalBalancesOut, dependencies=[Depends(group_member)])
async def group_total_balances(group_id: int, db: AsyncSession = Depends(get_db)):
    return await get_total_balances(db, group_id)

@router.get("/{group_id}/expenses", response_model=list[GroupExpenseOut], description="get all expenses of the group")
async def fetch_expenses(
    group_id: int,
    db: AsyncSession = Depends(get_db),
    member = Depends(group_member)
):
    return await list_group_expenses(db, group_id, member.user_id)

@router.post("/{group_id}/settlements", response_model=SettlementOut, status_code=201)
async def settle(
    group_id: int,
    data: SettlementCreate,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user)
):
    return await add_settlement(db, group_id, user.id, data)

@router.get("/{group_id}/settlements", response_model=list[SettlementOut], dependencies=[Depends(group_member)])
async def fetch_history(group_id: int, db: AsyncSession = Depends(get_db)):
    return await get_settlement_history(db, group_id)
