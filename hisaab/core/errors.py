from decimal import Decimal


class LedgerError(Exception):
    """Base class for failures the ledger reports back to its caller.

    Every subclass carries a stable machine ``code`` and renders itself as a
    JSON-friendly dict, so the HTTP layer can map them without knowing the
    individual kinds.
    """

    code = "ledger_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.message}


class InvalidSplitMethod(LedgerError):
    code = "invalid_split_method"

    def __init__(self, method):
        self.method = method
        super().__init__(f"Invalid split method: {method!r}")


class InvalidAmount(LedgerError):
    code = "invalid_amount"

    def __init__(self, amount: Decimal):
        self.amount = amount
        super().__init__(f"Amount must be greater than zero, got {amount}")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["amount"] = str(self.amount)
        return data


class SplitMismatch(LedgerError):
    code = "split_mismatch"

    def __init__(self, expected: Decimal, actual: Decimal, what: str = "Shares"):
        self.expected = expected
        self.actual = actual
        super().__init__(f"{what} do not sum to total amount ({actual} != {expected})")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["expected"] = str(self.expected)
        data["actual"] = str(self.actual)
        return data


class OutstandingBalance(LedgerError):
    code = "outstanding_balance"

    def __init__(self, member_id: int, balance: Decimal):
        self.member_id = member_id
        self.balance = balance
        super().__init__(f"Cannot remove member with outstanding balance of {balance}")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["member_id"] = self.member_id
        data["balance"] = str(self.balance)
        return data
