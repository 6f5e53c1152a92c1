import math
from typing import Any, Optional


def coerce_number(
    value: Any,
    default: float = 0.0,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
) -> float:
    """
    Best-effort numeric coercion for model output.

    Only real numbers pass through. Anything else (None, bools, strings such
    as "82" or "abc", NaN) becomes `default`. The result is clamped
    to [minimum, maximum] when bounds are given.
    """
    if isinstance(value, bool):
        number = default
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        number = default

    if math.isnan(number) or math.isinf(number):
        number = default
    if minimum is not None:
        number = max(minimum, number)
    if maximum is not None:
        number = min(maximum, number)
    return number


def coerce_text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default
