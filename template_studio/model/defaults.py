"""
Built-in Default Template and Sample Record.

The stock invoice layout used when no saved template is available, and
the sample record the editor previews bindings against.

Author: ML Engineering Team
"""

from typing import List

from .element import ElementStyle, ElementType, TemplateElement
from .template import TemplateData

# 1x1 grey PNG placeholder, embedded so it renders without network access
DEFAULT_LOGO_DATA_URL = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)

DEFAULT_LAYOUT = ('header', 'vendor', 'client', 'lines', 'bank', 'footer')

VENDOR_BLOCK = (
    "VELOSI CERTIFICATION L.L.C.\n"
    "Ahmad Bin Ali Business Cntr, 1st F. New Salata, C-Ring Road,\n"
    "P.O. Box: 3408, Doha, Qatar\n"
    "Tel no (+) 44352850, Fax no (+) 44352819\n"
    "Email: velosi@qatar.net.qa"
)

BANK_BLOCK = (
    "Bank Transfer: Pls remit the amount due to:\n"
    "ACCOUNT NAME: VELOSI CERTIFICATION LLC\n"
    "BANK: BNP PARIBAS\n"
    "BRANCH: Al Fardan Office Tower, P.O. Box 2636\n"
    "ACCOUNT NO: 06691 093293 001 60\n"
    "CURRENCY: Qatar Riyal/US Dollar\n"
    "IBAN NO (QAR): QA06BNPA000669109329300160QAR\n"
    "IBAN NO (USD): QA88BNPA000669109329300160USD\n"
    "SWIFT CODE: BNPAQAQA"
)

# (id, label, y, content) for the metadata labels and (id, label, y, binding) for values
_META_LABELS = [
    ('lbl_doc', 'Lbl Doc', 150, 'Document no:'),
    ('lbl_date', 'Lbl Date', 170, 'Date:'),
    ('lbl_ref', 'Lbl Ref', 190, 'Our Reference:'),
    ('lbl_wo', 'Lbl WO', 210, 'Work order:'),
    ('lbl_cont', 'Lbl Contract', 230, 'Contract No:'),
    ('lbl_proj', 'Lbl Proj', 250, 'Project name:'),
    ('lbl_curr', 'Lbl Curr', 270, 'Currency:'),
]
_META_VALUES = [
    ('val_doc', 'Val Doc', 150, 'metadata.invoiceNumber'),
    ('val_date', 'Val Date', 170, 'metadata.date'),
    ('val_ref', 'Val Ref', 190, 'metadata.ourReference'),
    ('val_wo', 'Val WO', 210, 'metadata.workOrder'),
    ('val_cont', 'Val Contract', 230, 'metadata.contractNo'),
    ('val_proj', 'Val Proj', 250, 'metadata.projectName'),
    ('val_curr', 'Val Curr', 270, 'currency'),
]


def _text(element_id, label, x, y, width, height, content=None, binding=None, **style) -> TemplateElement:
    return TemplateElement(
        id=element_id, type=ElementType.TEXT, label=label,
        x=x, y=y, width=width, height=height,
        content=content, binding=binding, style=ElementStyle(**style),
    )


def _box(element_id, label, x, y, width, height, background_color) -> TemplateElement:
    return TemplateElement(
        id=element_id, type=ElementType.BOX, label=label,
        x=x, y=y, width=width, height=height,
        style=ElementStyle(background_color=background_color),
    )


def build_default_elements() -> List[TemplateElement]:
    """Elements of the stock invoice layout."""
    elements = [
        TemplateElement(
            id='el_logo_img', type=ElementType.IMAGE, label='Logo',
            x=630, y=30, width=120, height=60,
            content=DEFAULT_LOGO_DATA_URL, style=ElementStyle(align='right'),
        ),
        _text('el_vendor_info', 'Vendor Details', 40, 30, 500, 70, content=VENDOR_BLOCK, font_size=9),
        _text('el_doc_title', 'Document Title', 0, 110, 794, 30,
              binding='metadata.documentTitle', font_size=16, font_weight='bold', align='center'),
        _box('el_client_box', 'Client Box', 40, 140, 340, 160, '#e5e5e5'),
        _text('el_client_name_overlay', 'Client Name', 50, 150, 320, 20,
              binding='metadata.clientName', font_size=10, font_weight='bold'),
        _text('el_client_content', 'Client Details', 50, 170, 320, 120,
              binding='metadata.clientAddress', font_size=10),
        _box('el_meta_box', 'Metadata Box', 400, 140, 354, 160, '#e5e5e5'),
    ]
    for element_id, label, y, content in _META_LABELS:
        elements.append(_text(element_id, label, 410, y, 100, 20, content=content,
                              font_size=9, font_weight='bold'))
    for element_id, label, y, binding in _META_VALUES:
        elements.append(_text(element_id, label, 520, y, 220, 20, binding=binding, font_size=9))

    elements.extend([
        TemplateElement(
            id='el_table', type=ElementType.TABLE, label='Line Items',
            x=40, y=320, width=714, height=350, style=ElementStyle(font_size=10),
        ),
        _box('el_words_box', 'Words Box', 40, 680, 714, 30, '#f0f0f0'),
        _text('el_words', 'Amount in Words', 50, 685, 700, 20,
              binding='amountInWords', font_size=10, font_weight='bold'),
        _box('el_footer_box', 'Footer Box', 40, 720, 714, 200, '#ffffff'),
        _text('el_payment_terms', 'Payment Terms', 50, 725, 694, 20,
              binding='metadata.paymentTerms', font_size=10),
        _text('el_bank_static', 'Bank Details Static', 50, 750, 694, 150, content=BANK_BLOCK, font_size=9),
        _text('el_sig_line', 'Signature Line', 550, 1000, 200, 20,
              content='__________________________', align='center'),
        _text('el_sig_text', 'Signature Text', 550, 1020, 200, 20,
              content='Authorized Signature', font_size=10, align='center'),
    ])
    return elements


DEFAULT_METADATA = {
    'documentTitle': "Invoice:",
    'vendorName': "VELOSI CERTIFICATION L.L.C.",
    'vendorAddress': "Ahmad Bin Ali Business Cntr, 1st F. New Salata, C-Ring Road,\nP.O. Box: 3408, Doha, Qatar",
    'vendorPhone': "(+) 44352850",
    'vendorFax': "(+) 44352819",
    'vendorEmail': "velosi@qatar.net.qa",
    'clientName': "QatarEnergy LNG",
    'clientAddress': "P.O. Box: 22666\nPalm Tower, West Bay\nDoha, Qatar",
    'paymentTerms': "Payment terms: 60 days upon submission of Invoice",
    'currency': "USD",
}

DEFAULT_BANK_DETAILS = {
    'accountName': "VELOSI CERTIFICATION LLC",
    'bankName': "BNP PARIBAS",
    'branch': "Al Fardan Office Tower, P.O. Box 2636",
    'accountNo': "06691 093293 001 60",
    'swiftCode': "BNPAQAQA",
    'ibanQar': "QA06BNPA000669109329300160QAR",
    'ibanUsd': "QA88BNPA000669109329300160USD",
    'currency': "Qatar Riyal/US Dollar",
}


def default_template() -> TemplateData:
    """A fresh copy of the built-in template."""
    return TemplateData(
        name="Velosi Standard Invoice",
        metadata=dict(DEFAULT_METADATA),
        bank_details=dict(DEFAULT_BANK_DETAILS),
        layout=DEFAULT_LAYOUT,
        elements=tuple(build_default_elements()),
    )


# Record the editor previews bindings against
SAMPLE_RECORD = {
    'metadata': {
        'vendorName': 'VELOSI CERTIFICATION L.L.C.',
        'clientName': 'QatarEnergy LNG',
        'clientAddress': 'PO Box 22666, Doha, Qatar',
        'invoiceNumber': '3126000114',
        'date': '09/01/2026',
        'documentTitle': 'Invoice:',
        'paymentTerms': '60 days upon submission of Invoice',
        'ourReference': '5216309119',
        'workOrder': '4500407643 / SES#6100968891',
        'contractNo': 'LTC/C/NFE/4935-A-20',
        'projectName': 'NFPS COMP2',
        'department': 'VSS',
        'scopeOfWork': 'Provision of Inspection Services',
        'currency': 'USD',
    },
    'summary': [
        {'description': 'Senior Welding Inspector - Day Shift', 'quantity': 26, 'unit': 'Day', 'rate': 350.00},
        {'description': 'Overtime Hours', 'quantity': 10, 'unit': 'Hour', 'rate': 50.00},
        {'description': 'Mobilization Fee', 'quantity': 1, 'unit': 'L/S', 'rate': 1000.00},
    ],
    'currency': 'USD',
    'bankDetails': dict(DEFAULT_BANK_DETAILS),
}
