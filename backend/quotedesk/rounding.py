from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any


def as_number(value: Any) -> float | int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


def _quantize(value: float, quantum: Decimal) -> Decimal:
    number = Decimal(str(value))
    with localcontext() as context:
        # Precision must cover every integer digit plus the requested scale.
        context.prec = max(context.prec, number.adjusted() - quantum.adjusted() + 2)
        return number.quantize(quantum, rounding=ROUND_HALF_UP)


def round_financial(value: float, decimals: int = 2) -> float:
    # Half-up, so 1.005 -> 1.01 rather than the banker's 1.0
    return float(_quantize(value, Decimal(1).scaleb(-decimals)))


def round_whole(value: float) -> int:
    return int(_quantize(value, Decimal(1)))
