"""
Document Model for Invoice Template Studio.

This module provides:
    - Template elements and their flat optional style
    - Immutable templates with history-friendly mutations
    - Document-data records with derived totals
    - The built-in default template and sample record

Author: ML Engineering Team
"""

from .element import (
    ElementType,
    ElementStyle,
    ResolvedStyle,
    TemplateElement,
    RENDER_PRIORITY,
    render_sort_key,
)
from .template import TemplateData, create_element, generate_element_id, NEW_TEMPLATE_NAME
from .document import (
    DocumentKind,
    SummaryLine,
    InvoiceMetadata,
    BankDetails,
    InvoiceData,
)
from .defaults import default_template, SAMPLE_RECORD

__all__ = [
    'ElementType',
    'ElementStyle',
    'ResolvedStyle',
    'TemplateElement',
    'RENDER_PRIORITY',
    'render_sort_key',
    'TemplateData',
    'create_element',
    'generate_element_id',
    'NEW_TEMPLATE_NAME',
    'DocumentKind',
    'SummaryLine',
    'InvoiceMetadata',
    'BankDetails',
    'InvoiceData',
    'default_template',
    'SAMPLE_RECORD'
]
