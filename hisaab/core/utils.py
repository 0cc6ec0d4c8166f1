from decimal import Decimal, ROUND_HALF_UP, getcontext

getcontext().prec = 28
CENTS = Decimal("0.01")

# Balances and share mismatches at or below this are treated as zero
EPSILON = Decimal("0.01")
ZERO = Decimal("0")

def qround(d : Decimal) -> Decimal:
    return d.quantize(CENTS, rounding=ROUND_HALF_UP)

def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None:
        return ZERO
    # str() first so floats keep their printed value, not their binary one
    return Decimal(str(value))

def money(value) -> Decimal:
    return qround(to_decimal(value))
