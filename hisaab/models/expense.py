from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Numeric, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from hisaab.core.enums import ExpenseStatus, PayerMode, enum_values
from hisaab.db.session import Base

class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    # Set only in single payer mode; nulled when the payer leaves the group
    paid_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    payer_mode = Column(
        Enum(PayerMode, name="payer_mode", native_enum=False, values_callable=enum_values),
        nullable=False,
        default=PayerMode.SINGLE,
    )
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    description = Column(String(255), nullable=True)
    status = Column(
        Enum(ExpenseStatus, name="expense_status", native_enum=False, values_callable=enum_values),
        nullable=False,
        default=ExpenseStatus.ACTIVE,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    group = relationship("Group", back_populates="expenses")
    shares = relationship("ExpenseShare", back_populates="expense", cascade="all, delete")
    payers = relationship("ExpensePayer", back_populates="expense", cascade="all, delete")
