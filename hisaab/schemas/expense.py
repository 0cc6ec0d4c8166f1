from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, model_validator
from hisaab.core.enums import PayerMode

class ShareIn(BaseModel):
    user_id: int = Field(ge=1)
    share_amount: Decimal = Field(ge=0)

class PayerIn(BaseModel):
    user_id: int = Field(ge=1)
    paid_amount: Decimal = Field(ge=0)

class ExpenseCreate(BaseModel):
    group_id: int
    amount: Decimal = Field(gt=0)
    description: str = Field(min_length=1, max_length=255)
    shares: list[ShareIn] = Field(min_length=1)
    # Either a single payer (defaults to the caller) or a list of payers
    paid_by: int | None = None
    payers: list[PayerIn] | None = None

    @model_validator(mode="after")
    def single_or_multiple_payers(self):
        if self.payers is not None and len(self.payers) == 0:
            self.payers = None
        if self.payers and self.paid_by is not None:
            raise ValueError("paid_by and payers are mutually exclusive")
        return self

class ShareOut(BaseModel):
    user_id: int
    name: str | None = None
    share_amount: Decimal

class PayerOut(BaseModel):
    user_id: int
    name: str | None = None
    paid_amount: Decimal

class ExpenseOut(BaseModel):
    id: int
    group_id: int
    description: str | None = None
    amount: Decimal
    payer_mode: PayerMode
    paid_by: int | None = None
    paid_by_name: str | None = None
    created_by: int | None = None
    created_at: datetime | None = None
    payers: list[PayerOut] = []
    shares: list[ShareOut] = []

class GroupExpenseOut(ExpenseOut):
    user_share: Decimal
    user_paid: Decimal
    user_status: str

class SplitRequest(BaseModel):
    amount: Decimal = Field(gt=0)
    split_method: str
    member_ids: list[int] = []
    exact_amounts: dict[int, Decimal] | None = None
    percentages: list[Decimal] | None = None

class SplitOut(BaseModel):
    shares: list[ShareOut]
