from decimal import Decimal
from pydantic import BaseModel

class MemberBalanceOut(BaseModel):
    user_id: int
    name: str | None
    balance: Decimal

class TransferOut(BaseModel):
    from_id: int
    from_name: str | None
    to_id: int
    to_name: str | None
    amount: Decimal

class GroupBalanceOut(BaseModel):
    balances: list[MemberBalanceOut]
    simplified: list[TransferOut]

class MemberTotalsOut(BaseModel):
    user_id: int
    name: str | None
    email: str | None
    total_paid: Decimal
    total_owed: Decimal
    net_settlements: Decimal
    current_balance: Decimal
    balance_status: str

class TotalBalancesOut(BaseModel):
    total_expenses: Decimal
    members: list[MemberTotalsOut]
