from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from hisaab.core.enums import MemberRole

class GroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None

class GroupOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    created_by: int | None = None
    created_at: datetime | None = None

class GroupListOut(GroupOut):
    member_count: int

class GroupMemberOut(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: MemberRole

class GroupDetailOut(BaseModel):
    group: GroupOut
    members: list[GroupMemberOut]

class AddMemberIn(BaseModel):
    email: EmailStr
