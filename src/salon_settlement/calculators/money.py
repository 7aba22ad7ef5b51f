"""Integer paisa arithmetic.

All money inside the engine is a non-negative int of paisa (1/100 rupee).
Rupee values exist only at the boundaries: caller input is converted with
rupees_to_paisa, display output with format_rupees.

Rounding is half-up to the nearest paisa everywhere.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

PAISA_PER_RUPEE = 100

_ONE = Decimal("1")


def _check(amount: int, name: str = "amount") -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"{name} must be an integer number of paisa, got {amount!r}")
    if amount < 0:
        raise ValueError(f"{name} must be non-negative, got {amount}")
    return amount


def _to_decimal(value: int | float | str | Decimal, name: str) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be numeric, got {value!r}")
    try:
        # str() first so floats convert by their shortest repr (2.675 -> "2.675")
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"{name} must be numeric, got {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"{name} must be finite, got {value!r}")
    return result


def round_half_up(value: Decimal) -> int:
    """Round a decimal paisa quantity to a whole paisa, half-up."""
    return int(value.quantize(_ONE, rounding=ROUND_HALF_UP))


def add(*amounts: int) -> int:
    """Sum paisa amounts."""
    return sum(_check(a) for a in amounts)


def subtract(amount: int, other: int) -> int:
    """Subtract, flooring at zero."""
    return max(0, _check(amount) - _check(other, "other"))


def percentage_of(amount: int, pct: int | float | str | Decimal) -> int:
    """Return pct percent of amount, rounded half-up to the nearest paisa."""
    return round_half_up(Decimal(_check(amount)) * _to_decimal(pct, "pct") / 100)


def apply_rate(amount: int, rate: int | float | str | Decimal) -> int:
    """Multiply amount by a fractional rate (0.18 for 18%), rounded half-up."""
    return round_half_up(Decimal(_check(amount)) * _to_decimal(rate, "rate"))


def cap_at(amount: int, ceiling: int) -> int:
    """Return amount, limited to ceiling."""
    return min(_check(amount), _check(ceiling, "ceiling"))


def rupees_to_paisa(
    value: int | float | str | Decimal,
    ceiling: int | None = None,
) -> int:
    """Convert a rupee value to paisa with round(value * 100).

    Negative and non-finite values are rejected. When ceiling (paisa) is given
    the result is capped at it, which also bounds absurdly large inputs.
    """
    rupees = _to_decimal(value, "value")
    if rupees < 0:
        raise ValueError(f"value must be non-negative, got {value!r}")
    if ceiling is not None:
        _check(ceiling, "ceiling")
        if rupees > Decimal(ceiling) / PAISA_PER_RUPEE:
            return ceiling
    return round_half_up(rupees * PAISA_PER_RUPEE)


def paisa_to_rupees(amount: int) -> Decimal:
    """Rupee value of a paisa amount, for display and logging only."""
    return (Decimal(_check(amount)) / PAISA_PER_RUPEE).quantize(Decimal("0.01"))


def _group_indian(digits: str) -> str:
    # Last three digits, then groups of two: 12345678 -> 1,23,45,678
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_rupees(amount: int) -> str:
    """Format paisa as a rupee string, e.g. 123400 -> '₹1,234.00'."""
    rupees, paisa = divmod(_check(amount), PAISA_PER_RUPEE)
    return f"₹{_group_indian(str(rupees))}.{paisa:02d}"
