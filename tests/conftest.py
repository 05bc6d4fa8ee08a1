"""Shared fixtures for the template studio test-suite."""

import io
import sys
from pathlib import Path

import pytest
from PIL import Image

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import ConfigurationManager
from template_studio.editor.session import EditorSession
from template_studio.model.defaults import default_template
from template_studio.model.document import InvoiceData
from template_studio.utils.helpers import to_data_url


@pytest.fixture(autouse=True)
def reset_config():
    """Every test starts from the shipped settings.yaml."""
    ConfigurationManager.reset()
    yield
    ConfigurationManager.reset()


@pytest.fixture
def record_data():
    return {
        'metadata': {
            'invoiceNumber': 'INV-2024/001',
            'clientName': 'Acme Corp',
            'clientRef': 'COMP1-ITP-001 rev2',
            'date': '15/01/2026',
        },
        'summary': [
            {'description': 'Senior Inspector - Day Shift', 'quantity': 2, 'unit': 'Day', 'rate': 100},
            {'description': 'Inspector overtime', 'quantity': 1, 'unit': 'Hour', 'rate': 50},
        ],
        'currency': 'USD',
    }


@pytest.fixture
def record(record_data):
    return InvoiceData.from_dict(record_data)


@pytest.fixture
def template():
    return default_template()


@pytest.fixture
def session(template):
    return EditorSession(template)


@pytest.fixture
def png_data_url():
    buffer = io.BytesIO()
    Image.new('RGB', (4, 4), (255, 0, 0)).save(buffer, format='PNG')
    return to_data_url(buffer.getvalue(), 'image/png')
