from decimal import Context, Decimal, InvalidOperation, ROUND_HALF_EVEN, Inexact, Rounded

# Largest magnitude a balance may reach (96-bit mantissa).
MAX_AMOUNT = Decimal("79228162514264337593543950335")
PRECISION = Decimal("0.0001")
ZERO = Decimal("0")

# Wide enough that any sum of two in-range 4-digit amounts is exact.
AMOUNT_CONTEXT = Context(prec=40, rounding=ROUND_HALF_EVEN, traps=[InvalidOperation, Inexact, Rounded])
_QUANTIZE_CONTEXT = Context(prec=40, rounding=ROUND_HALF_EVEN, traps=[InvalidOperation])


class AmountOverflow(ArithmeticError):
    """Raised when a result falls outside [-MAX_AMOUNT, MAX_AMOUNT]."""


def parse_amount(raw: str) -> Decimal:
    """
    Parse a CSV amount field into a 4-digit fixed-point Decimal.
    Raises ValueError for malformed, non-finite or out-of-range input.
    """
    try:
        value = Decimal(raw)
    except InvalidOperation as e:
        raise ValueError(f"invalid amount {raw!r}") from e

    if not value.is_finite():
        raise ValueError(f"non-finite amount {raw!r}")
    if value.copy_abs() > MAX_AMOUNT:
        raise ValueError(f"amount {raw!r} out of range")

    return value.quantize(PRECISION, context=_QUANTIZE_CONTEXT)


def _check_range(value: Decimal) -> Decimal:
    if value.copy_abs() > MAX_AMOUNT:
        raise AmountOverflow(f"{value} exceeds representable range")
    return value


def checked_add(left: Decimal, right: Decimal) -> Decimal:
    try:
        return _check_range(AMOUNT_CONTEXT.add(left, right))
    except (Inexact, Rounded) as e:
        raise AmountOverflow(f"{left} + {right} is not exactly representable") from e


def checked_sub(left: Decimal, right: Decimal) -> Decimal:
    try:
        return _check_range(AMOUNT_CONTEXT.subtract(left, right))
    except (Inexact, Rounded) as e:
        raise AmountOverflow(f"{left} - {right} is not exactly representable") from e


def format_amount(value: Decimal) -> str:
    """Format decimal with exactly 4 fractional digits."""
    return f"{value.quantize(PRECISION, context=_QUANTIZE_CONTEXT):f}"
