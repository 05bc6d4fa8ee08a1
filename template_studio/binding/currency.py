"""
Amount In Words.

Converts a monetary amount into the banking-style phrase printed on
invoices, e.g. "US DOLLARS ONE HUNDRED TWENTY-THREE AND 45/100".

Author: ML Engineering Team
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Dict, Union

ONES = [
    '', 'One', 'Two', 'Three', 'Four', 'Five', 'Six', 'Seven', 'Eight', 'Nine',
    'Ten', 'Eleven', 'Twelve', 'Thirteen', 'Fourteen', 'Fifteen', 'Sixteen',
    'Seventeen', 'Eighteen', 'Nineteen',
]
TENS = [
    '', '', 'Twenty', 'Thirty', 'Forty', 'Fifty', 'Sixty', 'Seventy', 'Eighty', 'Ninety',
]

# Short-scale groups, largest first
SCALES = [
    (10 ** 9, 'Billion'),
    (10 ** 6, 'Million'),
    (10 ** 3, 'Thousand'),
]

# Matched by substring so "USD " or "QAR (Riyal)" still resolve
CURRENCY_NAMES: Dict[str, str] = {
    'USD': 'US DOLLARS',
    'QAR': 'QATAR RIYALS',
    'EUR': 'EUROS',
    'GBP': 'POUNDS',
}

_CENT = Decimal('0.01')


def currency_name(currency: str) -> str:
    """
    Look up the printed name of a currency code.

    Args:
        currency: Currency code or symbol, e.g. "USD" or "$".

    Returns:
        Upper-case currency name, or the raw code when unknown.
    """
    code = (currency or '').strip()
    if code == '$':
        return CURRENCY_NAMES['USD']
    for key, name in CURRENCY_NAMES.items():
        if key in code.upper():
            return name
    return code


def _convert_group(n: int) -> str:
    """Spell out 0-999."""
    if n == 0:
        return ''
    if n < 20:
        return ONES[n]
    if n < 100:
        return TENS[n // 10] + ('-' + ONES[n % 10] if n % 10 else '')
    rest = n % 100
    return ONES[n // 100] + ' Hundred' + (' ' + _convert_group(rest) if rest else '')


def _convert_whole(n: int) -> str:
    if n == 0:
        return 'Zero'

    parts = []
    for scale, word in SCALES:
        count, n = divmod(n, scale)
        if count:
            parts.append(f"{_convert_whole(count) if count >= 1000 else _convert_group(count)} {word}")
    if n:
        parts.append(_convert_group(n))

    return ' '.join(parts)


def number_to_words(amount: Union[int, float, str, Decimal, None], currency: str = 'USD') -> str:
    """
    Convert an amount into upper-case words with currency and cents suffix.

    The amount is rounded half-up to two decimals first. Whole units are
    spelled out with short-scale grouping. Cents appear as "AND nn/100",
    or the phrase ends with "ONLY" when there are none. Negative amounts
    are spelled from their absolute value with a "MINUS" prefix.

    Args:
        amount: Amount to convert. Non-numeric input counts as zero.
        currency: Currency code, e.g. "USD", "QAR".

    Returns:
        Phrase such as "QATAR RIYALS ONE HUNDRED ONLY".

    Example:
        >>> number_to_words(15420.50, "USD")
        'US DOLLARS FIFTEEN THOUSAND FOUR HUNDRED TWENTY AND 50/100'
    """
    try:
        value = Decimal(str(amount if amount is not None else 0))
    except InvalidOperation:
        value = Decimal(0)
    if not value.is_finite():
        value = Decimal(0)

    rounded = value.copy_abs().quantize(_CENT, rounding=ROUND_HALF_UP)
    whole = int(rounded)
    cents = int((rounded - whole) * 100)

    words = _convert_whole(whole).upper()
    if value < 0 and rounded > 0:
        words = f"MINUS {words}"

    result = ' '.join(part for part in (currency_name(currency), words) if part)
    if cents > 0:
        result += f" AND {cents}/100"
    else:
        result += " ONLY"
    return result
