"""
Store Module for Invoice Template Studio.

This module provides:
    - Async store interfaces for templates and rates
    - An in-memory store
    - A SQLite store
    - The local single-template cache used as the offline fallback

Author: ML Engineering Team
"""

from .base import TemplateStore, RateStore
from .memory import InMemoryStore
from .sqlite_store import SqliteStore
from .local_cache import LocalTemplateCache

__all__ = [
    'TemplateStore',
    'RateStore',
    'InMemoryStore',
    'SqliteStore',
    'LocalTemplateCache'
]
