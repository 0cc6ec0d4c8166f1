import enum


class MemberRole(str, enum.Enum):
    ADMIN = "admin"
    MEMBER = "member"


class ExpenseStatus(str, enum.Enum):
    ACTIVE = "active"
    DELETED = "deleted"


class PayerMode(str, enum.Enum):
    SINGLE = "single"
    MULTIPLE = "multiple"


def enum_values(enum_cls):
    # stored values for SQLAlchemy Enum columns
    return [m.value for m in enum_cls]
