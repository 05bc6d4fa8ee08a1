"""
Queue Module for Invoice Template Studio.

This module provides:
    - The extraction result and extractor interface
    - Upload validation
    - The document queue with independent per-item pipelines

Author: ML Engineering Team
"""

from .extraction import ExtractionResult, Extractor, HttpExtractor, parse_model_json
from .intake import DocumentIntake, IntakeFile
from .document_queue import DocumentQueue, QueueItem, QueueStatus

__all__ = [
    'ExtractionResult',
    'Extractor',
    'HttpExtractor',
    'parse_model_json',
    'DocumentIntake',
    'IntakeFile',
    'DocumentQueue',
    'QueueItem',
    'QueueStatus'
]
