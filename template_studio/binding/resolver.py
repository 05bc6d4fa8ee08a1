"""
Binding Resolver Module.

Resolves an element's binding against a document-data record and
returns the display string both renderers draw. Composite bindings are
a closed enum; every other binding is a dotted path walked field by
field. Resolution never raises: a missing or malformed path renders as
an empty string.

Author: ML Engineering Team
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple, Union

from template_studio.utils.logger import get_logger
from .currency import number_to_words
from .formatting import coerce_number, format_value

# Initialize module logger
logger = get_logger(__name__)


class CompositeBinding(str, Enum):
    """Reserved binding keys whose value is synthesized from several fields."""
    BANK_SUMMARY = "bankDetails.summary"
    AMOUNT_IN_WORDS = "amountInWords"


@dataclass(frozen=True)
class FieldPath:
    """A dotted path into the record, e.g. "metadata.invoiceNumber"."""
    raw: str
    segments: Tuple[str, ...]

    @classmethod
    def parse(cls, raw: str) -> 'FieldPath':
        return cls(raw=raw, segments=tuple(raw.split('.')))


Binding = Union[CompositeBinding, FieldPath]


def parse_binding(path: Optional[str]) -> Optional[Binding]:
    """
    Classify a binding string.

    Args:
        path: Binding string from a template element.

    Returns:
        CompositeBinding for reserved keys, FieldPath otherwise, or None
        when the element is unbound.
    """
    if path is None:
        return None
    path = str(path).strip()
    if not path:
        return None
    try:
        return CompositeBinding(path)
    except ValueError:
        return FieldPath.parse(path)


def _as_mapping(record: Any) -> Mapping[str, Any]:
    """Accept either a plain mapping or a model object exposing to_dict()."""
    if record is None:
        return {}
    if isinstance(record, Mapping):
        return record
    to_dict = getattr(record, 'to_dict', None)
    if callable(to_dict):
        return to_dict()
    return {}


def lookup(record: Any, segments: Tuple[str, ...]) -> Any:
    """
    Walk a record one segment at a time.

    Mappings are indexed by key and lists by integer position. Any miss
    returns None.
    """
    current: Any = _as_mapping(record)
    for segment in segments:
        if current is None or segment == '':
            return None
        if isinstance(current, Mapping):
            current = current.get(segment)
        elif isinstance(current, (list, tuple)):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError):
                return None
        else:
            return None
    return current


def bank_summary(bank: Optional[Mapping[str, Any]]) -> str:
    """Build the multi-line bank details block."""
    if not bank:
        return ''

    def field(key: str) -> str:
        return format_value(bank.get(key))

    iban = field('ibanUsd') or field('ibanQar')
    return "\n".join([
        f"Account: {field('accountName')}",
        f"Bank: {field('bankName')}",
        f"Branch: {field('branch')}",
        f"Acc No: {field('accountNo')}",
        f"Swift: {field('swiftCode')}",
        f"IBAN: {iban}",
    ])


def amount_in_words(record: Any) -> str:
    """Spell out the record's grand total in its currency."""
    data = _as_mapping(record)
    currency = data.get('currency') or lookup(data, ('metadata', 'currency')) or 'USD'
    return number_to_words(coerce_number(data.get('grandTotal')), str(currency))


def resolve(record: Any, binding: Optional[str], content: Optional[str] = None) -> str:
    """
    Resolve an element's display text.

    Args:
        record: Document-data record (camelCase mapping or InvoiceData).
        binding: Dotted path or composite key. Takes precedence over content.
        content: Static fallback used when the element is unbound.

    Returns:
        Display string, never None.

    Example:
        >>> resolve({"grandTotal": 250}, "grandTotal")
        '250.00'
        >>> resolve({}, "metadata.vendorName")
        ''
    """
    parsed = parse_binding(binding)
    if parsed is None:
        return '' if content is None else str(content)

    try:
        if parsed is CompositeBinding.BANK_SUMMARY:
            bank = _as_mapping(record).get('bankDetails')
            return bank_summary(bank if isinstance(bank, Mapping) else None)

        if parsed is CompositeBinding.AMOUNT_IN_WORDS:
            return amount_in_words(record)

        value = lookup(record, parsed.segments)
        if value is None:
            logger.debug(f"Binding '{parsed.raw}' not found in record")
            return ''
        return format_value(value, parsed.raw)

    except Exception as e:
        # Misses render blank
        logger.debug(f"Binding '{binding}' could not be resolved: {e}")
        return ''
