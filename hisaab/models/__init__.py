from hisaab.models.user import User
from hisaab.models.group import Group
from hisaab.models.group_member import GroupMember
from hisaab.models.expense import Expense
from hisaab.models.expense_share import ExpenseShare
from hisaab.models.expense_payer import ExpensePayer
from hisaab.models.settlement import Settlement

__all__ = [
    "User",
    "Group",
    "GroupMember",
    "Expense",
    "ExpenseShare",
    "ExpensePayer",
    "Settlement",
]
