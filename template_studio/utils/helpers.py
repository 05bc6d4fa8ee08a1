"""
Helper Utilities Module.

This module provides common utility functions used throughout the
template studio. Functions here should be generic and reusable across
different modules.

Functions:
    - ensure_directory: Create directory if it doesn't exist
    - generate_timestamp: Generate formatted timestamps
    - document_filename: Derive an export filename from an invoice number
    - to_data_url: Encode bytes as a data URL
    - camel_to_snake / snake_to_camel: Key-style conversion
"""

import base64
import re
from datetime import datetime
from pathlib import Path
from typing import Optional, Union


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists.

    Returns:
        Path object pointing to the directory.

    Example:
        >>> ensure_directory("outputs/batches")
        PosixPath('outputs/batches')
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def generate_timestamp(format_str: str = "%Y%m%d_%H%M%S") -> str:
    """
    Generate a formatted timestamp string.

    Args:
        format_str: strftime format string.

    Returns:
        Formatted timestamp string.

    Example:
        >>> generate_timestamp("%Y-%m-%d")
        "2026-01-21"
    """
    return datetime.now().strftime(format_str)


def document_filename(
    invoice_number: Optional[str],
    fallback: str = "document",
    extension: str = ".pdf"
) -> str:
    """
    Derive an export filename from an invoice-number-like field.

    Non-alphanumeric characters are stripped. When nothing is left, the
    fallback stem is sanitized and used instead.

    Args:
        invoice_number: Invoice number of the document.
        fallback: Stem used when the invoice number yields nothing.
        extension: File extension including the dot.

    Returns:
        Filename such as "INV2024001.pdf".

    Example:
        >>> document_filename("INV-2024/001")
        "INV2024001.pdf"
    """
    stem = re.sub(r'[^A-Za-z0-9]', '', str(invoice_number or ''))
    if not stem:
        stem = re.sub(r'[^A-Za-z0-9]', '', Path(fallback).stem) or "document"
    return f"{stem}{extension}"


def to_data_url(content: bytes, mime_type: str) -> str:
    """
    Encode raw bytes as a base64 data URL.

    Args:
        content: File content.
        mime_type: MIME type of the content, e.g. "image/png".

    Returns:
        Data URL string.
    """
    encoded = base64.b64encode(content).decode('ascii')
    return f"data:{mime_type};base64,{encoded}"


def camel_to_snake(name: str) -> str:
    """Convert "vendorName" to "vendor_name"."""
    return re.sub(r'(?<!^)(?=[A-Z])', '_', name).lower()


def snake_to_camel(name: str) -> str:
    """Convert "vendor_name" to "vendorName"."""
    head, *rest = name.split('_')
    return head + ''.join(part[:1].upper() + part[1:] for part in rest)

