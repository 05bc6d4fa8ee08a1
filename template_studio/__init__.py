"""
Invoice Template Studio - Source Package.

This package contains the template rendering and data-binding engine
for extracted invoice documents. Each sub-package owns a single concern.

Modules:
    - layout: Page coordinate space and unit conversion
    - binding: Binding resolution, monetary formatting, amount in words
    - model: Template elements, templates and document-data records
    - rendering: Shared layout pass, PDF and canvas preview back-ends
    - editor: Canvas editing session, undo/redo history, template library
    - rates: Rate catalogue, reference matching and CSV import
    - queue: Extraction collaborator, intake validation, document queue
    - store: Template and rate persistence collaborators
    - postprocessor: Normalization of raw extraction records
    - output_handler: CSV, Excel and batch PDF exports

Architecture:
    Extractor → PostProcessor → Template merge → Editor ⇄ Renderers
                                     ↑
                               Rate Matcher
"""

__version__ = "1.0.0"
__author__ = "ML Engineering Team"

__all__ = [
    'layout',
    'binding',
    'model',
    'rendering',
    'editor',
    'rates',
    'queue',
    'store',
    'postprocessor',
    'output_handler',
    'utils'
]
