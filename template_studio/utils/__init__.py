"""
Utility Module for Invoice Template Studio.

This module provides common utilities used across all other modules:
    - Logging configuration
    - Exception hierarchy
    - Common helpers
"""

from .logger import setup_logger, setup_logger_from_config, get_logger
from .helpers import (
    ensure_directory,
    generate_timestamp,
    document_filename,
    to_data_url,
)

__all__ = [
    'setup_logger',
    'setup_logger_from_config',
    'get_logger',
    'ensure_directory',
    'generate_timestamp',
    'document_filename',
    'to_data_url'
]
