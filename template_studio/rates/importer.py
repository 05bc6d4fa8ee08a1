"""
Rate Catalog CSV Import.

Two layouts are recognised from the header row:

    ITP:     ITP No, LOCATION, INSPECTOR, DESIGNATION, Unit, Daily/Hourly Rate, OT Rate
    Generic: reference, description, unit, rate[, currency]

ITP rates carry currency symbols or codes in the rate column
("$500.00", "QAR 1,200"); the currency is sniffed from them.

Author: ML Engineering Team
"""

import csv
import io
import re
from pathlib import Path
from typing import List, Union

from template_studio.utils.logger import get_logger
from .rate import RateItem

# Initialize module logger
logger = get_logger(__name__)

ITP_HEADERS = ["ITP No", "LOCATION", "INSPECTOR", "DESIGNATION", "Unit", "Daily/Hourly Rate", "OT Rate"]
ITP_SAMPLE_ROW = ["COMP1-TPIS-ITP-0001", "USA", "JOHN DOE", "SENIOR INSPECTOR", "Day", "$500.00", "$50.00"]

TEMPLATE_FILENAME = "rate_template.csv"


def is_itp_header(header: List[str]) -> bool:
    text = ','.join(header).lower()
    return 'itp no' in text or 'inspector' in text


def sniff_currency(raw_rate: str) -> str:
    """Currency of an ITP rate cell; USD unless a euro, pound or riyal marker is present."""
    if '€' in raw_rate or 'EUR' in raw_rate:
        return 'EUR'
    if '£' in raw_rate or 'GBP' in raw_rate:
        return 'GBP'
    if 'QAR' in raw_rate:
        return 'QAR'
    return 'USD'


def clean_amount(raw: str) -> float:
    """Keep digits and the decimal point only; unparsable cells become 0."""
    digits = re.sub(r'[^0-9.]', '', raw or '')
    try:
        return float(digits)
    except ValueError:
        return 0.0


def _parse_itp_row(cols: List[str]) -> RateItem:
    raw_rate = cols[5]
    raw_ot = cols[6] if len(cols) > 6 and cols[6] else '0'
    description = f"{cols[3]} - {cols[2]}"
    if description.endswith(' - '):
        description = description[:-3]
    return RateItem(
        reference_no=cols[0],
        description=description,
        unit=cols[4] or 'Day',
        rate=clean_amount(raw_rate),
        ot_rate=clean_amount(raw_ot),
        currency=sniff_currency(raw_rate),
    )


def _parse_generic_row(cols: List[str]) -> RateItem:
    return RateItem(
        reference_no=cols[0],
        description=cols[1],
        unit=cols[2],
        rate=cols[3],
        ot_rate=0,
        currency=(cols[4] if len(cols) > 4 and cols[4] else 'USD'),
    )


def parse_rates_csv(text: str) -> List[RateItem]:
    """
    Parse rate catalog CSV text.

    Blank lines and rows with too few columns (6 for ITP, 4 for generic)
    are skipped. Quoted fields may contain commas.

    Args:
        text: CSV content including the header row.

    Returns:
        Parsed rates in file order.
    """
    rows = list(csv.reader(io.StringIO(text.lstrip('\ufeff'))))
    if not rows:
        return []

    itp = is_itp_header(rows[0])
    minimum = 6 if itp else 4
    rates: List[RateItem] = []
    skipped = 0
    for row in rows[1:]:
        cols = [c.strip() for c in row]
        if not any(cols):
            continue
        if len(cols) < minimum:
            skipped += 1
            continue
        rates.append(_parse_itp_row(cols) if itp else _parse_generic_row(cols))

    logger.info(
        f"Parsed {len(rates)} rate(s) from {'ITP' if itp else 'generic'} CSV"
        + (f", skipped {skipped} short row(s)" if skipped else "")
    )
    return rates


def load_rates_csv(path: Union[str, Path]) -> List[RateItem]:
    """Read and parse a rate catalog CSV file."""
    return parse_rates_csv(Path(path).read_text(encoding='utf-8'))


def template_csv() -> str:
    """Downloadable blank ITP template with one sample row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow(ITP_HEADERS)
    writer.writerow(ITP_SAMPLE_ROW)
    return buffer.getvalue()
