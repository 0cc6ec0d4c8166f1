from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from hisaab.core.dependencies import get_db, get_current_user
from hisaab.core.splits import compute_shares
from hisaab.schemas.expense import ExpenseCreate, ExpenseOut, SplitOut, SplitRequest
from hisaab.services.expense_services import create_expense, delete_expense, get_expense_by_id

router = APIRouter()

@router.post("/", response_model=ExpenseOut, status_code=201)
async def add_expense(data: ExpenseCreate, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await create_expense(db, data, current_user.id)

@router.post("/calculate-split", response_model=SplitOut, dependencies=[Depends(get_current_user)])
async def calculate_split(data: SplitRequest):
    shares = compute_shares(
        data.amount,
        data.split_method,
        data.member_ids,
        exact_amounts=data.exact_amounts,
        percentages=data.percentages,
    )
    return {
        "shares": [
            {"user_id": s.member_id, "share_amount": s.share_amount}
            for s in shares
        ]
    }

@router.get("/{expense_id}", response_model=ExpenseOut)
async def fetch(
    expense_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
):
    return await get_expense_by_id(db, expense_id=expense_id, user_id=current_user.id)

@router.delete("/{expense_id}")
async def del_expense(expense_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await delete_expense(db, expense_id=expense_id, user_id=current_user.id)
