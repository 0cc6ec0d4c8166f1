from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field

class SettlementCreate(BaseModel):
    to_user: int = Field(ge=1)
    amount: Decimal = Field(gt=0)
    description: str | None = Field(default=None, max_length=255)

class SettlementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    group_id: int
    from_user: int
    from_user_name: str | None = None
    to_user: int
    to_user_name: str | None = None
    amount: Decimal
    description: str | None = None
    created_at: datetime | None = None
