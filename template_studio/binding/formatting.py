"""
Value Formatting Module.

Deterministic conversion of resolved values to display strings. Both
renderers, the CSV/Excel exporters and the record model use these
helpers so a number is always printed the same way.

Author: ML Engineering Team
"""

import math
import re
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Optional

from template_studio.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

_CENT = Decimal('0.01')

# Last path segments that carry money
MONETARY_SUFFIXES = ('rate', 'total')


def coerce_number(value: Any) -> float:
    """
    Coerce user or extractor input to a finite float.

    Anything unparsable, NaN or infinite becomes 0.0 so that invalid input
    can never reach a total.

    Args:
        value: Number, numeric string (thousands separators allowed) or None.

    Returns:
        Finite float.

    Example:
        >>> coerce_number("1,250.50")
        1250.5
        >>> coerce_number("abc")
        0.0
    """
    if value is None or value == '':
        return 0.0

    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    else:
        text = re.sub(r'[,\s]', '', str(value))
        try:
            number = float(text)
        except ValueError:
            logger.debug(f"Coerced non-numeric value to 0: {value!r}")
            return 0.0

    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def round_money(value: Any) -> float:
    """Round half-up to two decimals."""
    amount = Decimal(str(coerce_number(value)))
    return float(amount.quantize(_CENT, rounding=ROUND_HALF_UP))


def format_currency(value: Any) -> str:
    """
    Format an amount with thousands separators and exactly two decimals.

    Args:
        value: Amount to format. Non-numeric input formats as "0.00".

    Returns:
        Formatted string.

    Example:
        >>> format_currency(1234.5)
        '1,234.50'
    """
    try:
        amount = Decimal(str(coerce_number(value)))
    except InvalidOperation:
        amount = Decimal(0)
    return f"{amount.quantize(_CENT, rounding=ROUND_HALF_UP):,.2f}"


def format_plain(value: float) -> str:
    """Render a non-monetary number the way a person would type it ("2", "1.5")."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return ''
        if value.is_integer():
            return str(int(value))
    return str(value)


def is_monetary_path(path: Optional[str]) -> bool:
    """
    Check whether a binding path addresses a monetary field.

    The last segment decides: "grandTotal", "summary.0.rate" and
    "summary.0.total" are monetary; "metadata.date" is not.
    """
    if not path:
        return False
    last = path.rsplit('.', 1)[-1].lower()
    return last.endswith(MONETARY_SUFFIXES)


def is_number(value: Any) -> bool:
    """True for int/float/Decimal values, excluding booleans."""
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def format_value(value: Any, path: Optional[str] = None) -> str:
    """
    Convert a resolved value to its display string.

    Args:
        value: Value found at the binding path.
        path: Binding path, used to decide monetary formatting.

    Returns:
        Display string. None and container values render as "".
    """
    if value is None:
        return ''
    if is_number(value):
        if is_monetary_path(path):
            return format_currency(value)
        return format_plain(value)
    if isinstance(value, bool):
        return format_plain(value)
    if isinstance(value, (dict, list, tuple)):
        logger.debug(f"Binding '{path}' resolved to a container, rendering blank")
        return ''
    return str(value)
