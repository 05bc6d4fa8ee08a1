"""
Common binding paths offered by the property panel's binding dropdown.
Any other dotted path can still be typed in as a custom binding.
"""

from typing import List, NamedTuple, Optional

from .resolver import CompositeBinding


class BindingOption(NamedTuple):
    label: str
    path: str


COMMON_BINDINGS: List[BindingOption] = [
    BindingOption('Vendor Name', 'metadata.vendorName'),
    BindingOption('Vendor Address', 'metadata.vendorAddress'),
    BindingOption('Vendor Phone', 'metadata.vendorPhone'),
    BindingOption('Vendor Email', 'metadata.vendorEmail'),
    BindingOption('Client Name', 'metadata.clientName'),
    BindingOption('Client Address', 'metadata.clientAddress'),
    BindingOption('Client Reference (ITP No.)', 'metadata.clientRef'),
    BindingOption('Invoice Number', 'metadata.invoiceNumber'),
    BindingOption('Date', 'metadata.date'),
    BindingOption('Document Title', 'metadata.documentTitle'),
    BindingOption('Our Reference', 'metadata.ourReference'),
    BindingOption('Work Order', 'metadata.workOrder'),
    BindingOption('Contract No', 'metadata.contractNo'),
    BindingOption('Project Name', 'metadata.projectName'),
    BindingOption('Scope of Work', 'metadata.scopeOfWork'),
    BindingOption('Department', 'metadata.department'),
    BindingOption('Currency', 'metadata.currency'),
    BindingOption('Grand Total', 'grandTotal'),
    BindingOption('Total In Words', CompositeBinding.AMOUNT_IN_WORDS.value),
    BindingOption('Bank Details Block', CompositeBinding.BANK_SUMMARY.value),
]


def binding_label(path: Optional[str]) -> Optional[str]:
    """Return the catalog label for a path, or None for custom paths."""
    for option in COMMON_BINDINGS:
        if option.path == path:
            return option.label
    return None


def is_custom_binding(path: Optional[str]) -> bool:
    """True when a non-empty binding is not one of the catalog entries."""
    return bool(path) and binding_label(path) is None
