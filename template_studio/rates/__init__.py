"""
Rates Module for Invoice Template Studio.

This module provides:
    - The rate catalog item
    - Reference matching (exact, containment, similarity) and rate application
    - Rate catalog CSV import

Author: ML Engineering Team
"""

from .rate import RateItem
from .matcher import MatchKind, RateMatch, RateMatcher, RateSuggestion
from .importer import parse_rates_csv, load_rates_csv, template_csv, ITP_HEADERS

__all__ = [
    'RateItem',
    'MatchKind',
    'RateMatch',
    'RateMatcher',
    'RateSuggestion',
    'parse_rates_csv',
    'load_rates_csv',
    'template_csv',
    'ITP_HEADERS'
]
