"""
Data Normalizers Module.

This module provides normalization for extracted document values:
    - Date strings to the configured document date format
    - Amount strings (symbols, codes, separators) to floats
    - Whitespace cleanup of free text

Author: ML Engineering Team
"""

import re
from datetime import datetime
from typing import List, Optional

from dateutil import parser as date_parser

from config import get_config
from template_studio.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


class DateNormalizer:
    """
    Normalizes date strings to one output format.

    Extracted documents mostly use day-first dates, so day-first
    interpretation is tried before month-first when no explicit format
    matches.

    Attributes:
        output_format: Target date format string.
        input_formats: Explicit formats tried before dateutil.

    Example:
        >>> normalizer = DateNormalizer()
        >>> normalizer.normalize("2026-01-15")
        '15/01/2026'
        >>> normalizer.normalize("January 15th, 2026")
        '15/01/2026'
    """

    PREFIXES = ('date:', 'dated:', 'invoice date:', 'due date:')

    def __init__(self) -> None:
        self.output_format = get_config("postprocessing.date.output_format", "%d/%m/%Y")
        self.input_formats: List[str] = get_config(
            "postprocessing.date.input_formats",
            ["%d/%m/%Y", "%Y-%m-%d", "%d-%m-%Y", "%d.%m.%Y", "%B %d, %Y", "%b %d, %Y", "%d %B %Y"]
        )
        logger.debug(f"DateNormalizer initialized (output: {self.output_format})")

    def normalize(self, date_str: Optional[str]) -> Optional[str]:
        """
        Normalize a date string.

        Args:
            date_str: Input date in any recognised format.

        Returns:
            Formatted date, or None if it cannot be parsed.
        """
        if not date_str or not str(date_str).strip():
            return None
        cleaned = self._clean(str(date_str))
        parsed = self._try_explicit_formats(cleaned) or self._try_dateutil(cleaned)
        if parsed is None:
            logger.debug(f"Could not parse date: {date_str}")
            return None
        return parsed.strftime(self.output_format)

    def _clean(self, date_str: str) -> str:
        date_str = ' '.join(date_str.split())
        lowered = date_str.lower()
        for prefix in self.PREFIXES:
            if lowered.startswith(prefix):
                date_str = date_str[len(prefix):].strip()
                break
        # 1st, 2nd, 3rd, 4th
        return re.sub(r'(\d+)(st|nd|rd|th)\b', r'\1', date_str, flags=re.IGNORECASE).strip()

    def _try_explicit_formats(self, date_str: str) -> Optional[datetime]:
        for fmt in self.input_formats:
            try:
                return datetime.strptime(date_str, fmt)
            except ValueError:
                continue
        return None

    @staticmethod
    def _try_dateutil(date_str: str) -> Optional[datetime]:
        for dayfirst in (True, False):
            try:
                return date_parser.parse(date_str, dayfirst=dayfirst, fuzzy=True)
            except (ValueError, OverflowError):
                continue
        return None


class AmountNormalizer:
    """
    Converts amount strings to floats.

    Handles currency symbols and codes, thousands separators and the
    European comma decimal.

    Example:
        >>> normalizer = AmountNormalizer()
        >>> normalizer.to_float("QAR 1,234.50")
        1234.5
        >>> normalizer.to_float("€ 1.234,56")
        1234.56
    """

    CURRENCY_SYMBOLS = ['$', '€', '£', '¥', '₹']
    CURRENCY_CODES = ['USD', 'QAR', 'EUR', 'GBP', 'JPY', 'INR', 'AED', 'SAR']

    def to_float(self, value) -> Optional[float]:
        """
        Parse an amount.

        Args:
            value: Number or amount string.

        Returns:
            Float value, or None if nothing numeric is found.
        """
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return float(value)

        text = str(value)
        for symbol in self.CURRENCY_SYMBOLS:
            text = text.replace(symbol, '')
        for code in self.CURRENCY_CODES:
            text = re.sub(rf'\b{code}\b', '', text, flags=re.IGNORECASE)
        text = re.sub(r'[^\d,.\-]', '', text)
        if not text:
            return None

        text = self._handle_european_format(text).replace(',', '')
        try:
            return float(text)
        except ValueError:
            logger.debug(f"Could not parse amount: {value!r}")
            return None

    @staticmethod
    def _handle_european_format(text: str) -> str:
        """Treat a single trailing comma with at most two digits after it as the decimal point."""
        if text.count(',') == 1 and text.rfind(',') > text.rfind('.'):
            after = text[text.rfind(',') + 1:]
            if after.isdigit() and len(after) <= 2:
                return text.replace('.', '').replace(',', '.')
        return text


def clean_text(value: Optional[str]) -> Optional[str]:
    """Collapse runs of spaces and tabs and trim each line; keeps line breaks."""
    if value is None:
        return None
    lines = [' '.join(line.split()) for line in str(value).splitlines()]
    return '\n'.join(lines).strip()
