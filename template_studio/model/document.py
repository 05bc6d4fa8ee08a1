"""
Document-Data Record Module.

This module defines the per-document instance data that templates are
rendered against: metadata, line items, bank details and currency.

Line totals and the grand total are derived properties, never stored,
so they can never disagree with the quantities and rates they come from.

Author: ML Engineering Team
"""

import copy
import json
import re
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional

from template_studio.binding.currency import number_to_words
from template_studio.binding.formatting import coerce_number, round_money
from template_studio.utils.exceptions import RecordEditError
from template_studio.utils.helpers import camel_to_snake, snake_to_camel
from template_studio.utils.logger import get_logger
from .element import TemplateElement

# Initialize module logger
logger = get_logger(__name__)

DEFAULT_CURRENCY = "USD"
PRO_FORMA_TITLE = "Pro forma invoice:"


class DocumentKind(str, Enum):
    """Kind tag passed to the extractor and used when merging with a template."""
    INVOICE = "invoice"
    PURCHASE_ORDER = "po"
    TIMESHEET = "timesheet"


def _is_present(value: Any) -> bool:
    return value is not None and not (isinstance(value, str) and not value.strip())


# =============================================================================
# LINE ITEMS
# =============================================================================

@dataclass
class SummaryLine:
    """
    One line item.

    Quantity and rate are coerced to finite floats on every assignment;
    total is derived from them.

    Example:
        >>> line = SummaryLine("Inspector", quantity="2", rate=100)
        >>> line.total
        200.0
        >>> line.rate = "abc"
        >>> line.total
        0.0
    """
    description: str = ''
    quantity: float = 0.0
    unit: str = ''
    rate: float = 0.0
    line_text: str = ''

    def __setattr__(self, name: str, value: Any) -> None:
        if name in ('quantity', 'rate'):
            value = coerce_number(value)
        elif name in ('description', 'unit', 'line_text'):
            value = '' if value is None else str(value)
        super().__setattr__(name, value)

    @property
    def total(self) -> float:
        return round_money(self.quantity * self.rate)

    def update(self, changes: Dict[str, Any]) -> None:
        """Apply field changes by snake_case or camelCase name; total is ignored."""
        known = {f.name for f in fields(self)}
        for key, value in changes.items():
            name = camel_to_snake(key)
            if name in known:
                setattr(self, name, value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'description': self.description,
            'quantity': self.quantity,
            'unit': self.unit,
            'rate': self.rate,
            'total': self.total,
            'lineText': self.line_text,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SummaryLine':
        line = cls(
            description=data.get('description'),
            quantity=data.get('quantity'),
            unit=data.get('unit'),
            rate=data.get('rate'),
            line_text=data.get('lineText', data.get('line_text')),
        )
        if 'total' in data and data['total'] not in (None, ''):
            extracted = coerce_number(data['total'])
            if abs(extracted - line.total) >= 0.005:
                logger.debug(
                    f"Ignoring extracted line total {extracted} for '{line.description}', "
                    f"derived {line.total}"
                )
        return line


# =============================================================================
# METADATA AND BANK DETAILS
# =============================================================================

class _CamelRecord:
    """Mixin for flat string records serialized with camelCase keys."""

    extras: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        data = {
            snake_to_camel(f.name): getattr(self, f.name)
            for f in fields(self)
            if f.name != 'extras' and getattr(self, f.name) is not None
        }
        data.update(self.extras)
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]):
        known = {f.name for f in fields(cls) if f.name != 'extras'}
        values: Dict[str, Any] = {}
        extras: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            name = camel_to_snake(key)
            if name in known:
                values[name] = None if value is None else str(value)
            else:
                extras[key] = value
        return cls(**values, extras=extras)

    def get(self, key: str, default: Any = None) -> Any:
        name = camel_to_snake(key)
        if name != 'extras' and hasattr(self, name):
            value = getattr(self, name)
            return default if value is None else value
        return self.extras.get(key, default)

    def set(self, key: str, value: Any) -> None:
        name = camel_to_snake(key)
        if name != 'extras' and hasattr(self, name):
            setattr(self, name, value)
        else:
            self.extras[key] = value


@dataclass
class InvoiceMetadata(_CamelRecord):
    """Header fields of a document. Unknown extracted keys are kept in extras."""
    document_title: Optional[str] = None
    vendor_name: Optional[str] = None
    vendor_address: Optional[str] = None
    vendor_phone: Optional[str] = None
    vendor_fax: Optional[str] = None
    vendor_email: Optional[str] = None
    client_name: Optional[str] = None
    client_address: Optional[str] = None
    invoice_number: Optional[str] = None
    date: Optional[str] = None
    client_ref: Optional[str] = None
    contract_no: Optional[str] = None
    project_name: Optional[str] = None
    scope_of_work: Optional[str] = None
    payment_terms: Optional[str] = None
    work_order: Optional[str] = None
    department: Optional[str] = None
    our_reference: Optional[str] = None
    currency: Optional[str] = None
    extras: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BankDetails(_CamelRecord):
    """Remittance details printed in the footer."""
    account_name: Optional[str] = None
    bank_name: Optional[str] = None
    branch: Optional[str] = None
    account_no: Optional[str] = None
    swift_code: Optional[str] = None
    iban_qar: Optional[str] = None
    iban_usd: Optional[str] = None
    currency: Optional[str] = None
    extras: Dict[str, Any] = field(default_factory=dict)


def _merge_defaults(defaults: Dict[str, Any], extracted: Dict[str, Any]) -> Dict[str, Any]:
    """Template values as defaults, overridden by present extracted values."""
    merged = dict(defaults)
    for key, value in extracted.items():
        if _is_present(value):
            merged[key] = value
        else:
            merged.setdefault(key, value)
    return merged


# =============================================================================
# RECORD
# =============================================================================

@dataclass
class InvoiceData:
    """
    Per-document instance data rendered through a template.

    Attributes:
        metadata: Header fields.
        summary: Ordered line items.
        currency: Document currency code.
        bank_details: Remittance details.
        original_file_name: Name of the uploaded source file.
        layout: Section ordering hint copied from the template.
        elements: Template elements the record was merged with.

    Example:
        >>> record = InvoiceData(summary=[SummaryLine(quantity=2, rate=100),
        ...                               SummaryLine(quantity=1, rate=50)])
        >>> record.grand_total
        250.0
    """
    metadata: InvoiceMetadata = field(default_factory=InvoiceMetadata)
    summary: List[SummaryLine] = field(default_factory=list)
    currency: str = DEFAULT_CURRENCY
    bank_details: BankDetails = field(default_factory=BankDetails)
    original_file_name: Optional[str] = None
    layout: List[str] = field(default_factory=list)
    elements: List[TemplateElement] = field(default_factory=list)

    @property
    def grand_total(self) -> float:
        return round_money(sum(line.total for line in self.summary))

    @property
    def amount_in_words(self) -> str:
        return number_to_words(self.grand_total, self.currency or DEFAULT_CURRENCY)

    # -------------------------------------------------------------------------
    # Line mutations
    # -------------------------------------------------------------------------

    def add_line(self, line: Optional[SummaryLine] = None) -> SummaryLine:
        """Append a line (blank by default) and return it."""
        line = line if line is not None else SummaryLine()
        self.summary.append(line)
        return line

    def update_line(self, index: int, changes: Dict[str, Any]) -> SummaryLine:
        """
        Edit one line in place.

        Raises:
            IndexError: If the index does not address a line.
        """
        line = self.summary[index]
        line.update(changes)
        return line

    def remove_line(self, index: int) -> SummaryLine:
        return self.summary.pop(index)

    def set_metadata(self, key: str, value: Any) -> None:
        self.metadata.set(key, value)

    # -------------------------------------------------------------------------
    # Manual JSON editing
    # -------------------------------------------------------------------------

    def to_json(self, indent: int = 2) -> str:
        """JSON text offered for manual editing (no template elements)."""
        data = self.to_dict()
        data.pop('elements', None)
        return json.dumps(data, indent=indent, ensure_ascii=False)

    def apply_json_edit(self, text: str) -> None:
        """
        Replace the record's data from edited JSON text.

        The text is fully parsed and validated before anything is
        assigned, so a failure leaves the record untouched.

        Args:
            text: JSON object text; surrounding code fences are tolerated.

        Raises:
            RecordEditError: If the text is not a valid record.
        """
        cleaned = re.sub(r'^```(?:json)?\s*|\s*```$', '', text.strip())
        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            raise RecordEditError(str(e))
        if not isinstance(data, dict):
            raise RecordEditError("top-level value must be an object")

        data.setdefault('elements', [el.to_dict() for el in self.elements])
        try:
            parsed = InvoiceData.from_dict(data)
        except Exception as e:
            raise RecordEditError(str(e))

        for f in fields(self):
            setattr(self, f.name, getattr(parsed, f.name))
        logger.info("Applied manual JSON edit to record")

    # -------------------------------------------------------------------------
    # Template merge
    # -------------------------------------------------------------------------

    def merge_with_template(self, template, kind: DocumentKind = DocumentKind.INVOICE) -> 'InvoiceData':
        """
        Instantiate this extracted record against a template.

        Template metadata and bank details act as defaults; extracted values
        override where present. Purchase orders always get the pro forma
        document title.

        Args:
            template: TemplateData supplying elements and defaults.
            kind: Document kind.

        Returns:
            New merged record; self is not modified.
        """
        metadata = _merge_defaults(dict(template.metadata), self.metadata.to_dict())
        if DocumentKind(kind) == DocumentKind.PURCHASE_ORDER:
            metadata['documentTitle'] = PRO_FORMA_TITLE
        elif not _is_present(metadata.get('documentTitle')):
            metadata['documentTitle'] = PRO_FORMA_TITLE

        currency = (
            self.currency or self.metadata.currency
            or template.metadata.get('currency') or DEFAULT_CURRENCY
        )
        metadata['currency'] = currency

        bank = _merge_defaults(dict(template.bank_details), self.bank_details.to_dict())

        return InvoiceData(
            metadata=InvoiceMetadata.from_dict(metadata),
            summary=copy.deepcopy(self.summary),
            currency=currency,
            bank_details=BankDetails.from_dict(bank),
            original_file_name=self.original_file_name,
            layout=list(template.layout),
            elements=list(template.elements),
        )

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def copy(self) -> 'InvoiceData':
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """camelCase dictionary that bindings are resolved against."""
        data: Dict[str, Any] = {
            'metadata': self.metadata.to_dict(),
            'summary': [line.to_dict() for line in self.summary],
            'grandTotal': self.grand_total,
            'currency': self.currency,
            'bankDetails': self.bank_details.to_dict(),
            'layout': list(self.layout),
            'elements': [el.to_dict() for el in self.elements],
        }
        if self.original_file_name is not None:
            data['originalFileName'] = self.original_file_name
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'InvoiceData':
        """
        Build a record from a possibly incomplete mapping.

        Every field may be absent. Stored totals are ignored in favour of
        the derived ones.
        """
        data = data or {}
        metadata = InvoiceMetadata.from_dict(data.get('metadata'))
        # Left blank when absent so a template default can fill it on merge
        currency = data.get('currency') or metadata.currency or ''
        summary = [
            SummaryLine.from_dict(line)
            for line in data.get('summary') or []
            if isinstance(line, dict)
        ]
        return cls(
            metadata=metadata,
            summary=summary,
            currency=str(currency),
            bank_details=BankDetails.from_dict(data.get('bankDetails')),
            original_file_name=data.get('originalFileName'),
            layout=list(data.get('layout') or []),
            elements=[TemplateElement.from_dict(el) for el in data.get('elements') or []],
        )
