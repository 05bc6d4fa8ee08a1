"""
Custom Exceptions Module.

This module defines all custom exceptions used throughout the template
studio. Specific exceptions let each layer decide whether a failure is
surfaced to the user or degraded gracefully.

Exception Hierarchy:
    TemplateStudioError (base)
    ├── TemplateError
    │   └── InvalidElementError
    ├── RecordError
    │   └── RecordEditError
    ├── ExtractionError
    ├── PersistenceError
    ├── RenderError
    │   └── ImageLoadError
    ├── OutputError
    │   ├── CsvExportError
    │   └── ExcelExportError
    └── InputError
        ├── UnsupportedFileTypeError
        └── FileTooLargeError
"""

from typing import Any, Dict, List, Optional


class TemplateStudioError(Exception):
    """
    Base exception for all template studio errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# TEMPLATE ERRORS
# =============================================================================

class TemplateError(TemplateStudioError):
    """Base exception for template model errors."""
    pass


class InvalidElementError(TemplateError):
    """
    Raised when an element definition cannot be built.

    Example:
        >>> raise InvalidElementError("el_1", "unknown element type 'circle'")
    """

    def __init__(self, element_id: Optional[str], reason: Optional[str] = None):
        message = f"Invalid template element: {element_id}"
        details = {"element_id": element_id, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# RECORD ERRORS
# =============================================================================

class RecordError(TemplateStudioError):
    """Base exception for document-data record errors."""
    pass


class RecordEditError(RecordError):
    """
    Raised when a manual JSON edit of a record cannot be applied.

    The record is left untouched when this is raised.
    """

    def __init__(self, reason: Optional[str] = None):
        message = "Invalid JSON format. Please fix syntax errors before saving."
        details = {"reason": reason}
        super().__init__(message, details)


# =============================================================================
# EXTRACTION ERRORS
# =============================================================================

class ExtractionError(TemplateStudioError):
    """Raised when the extractor fails or returns an unusable response."""

    def __init__(self, filename: Optional[str], reason: Optional[str] = None):
        message = f"Extraction failed for: {filename}"
        details = {"filename": filename, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# PERSISTENCE ERRORS
# =============================================================================

class PersistenceError(TemplateStudioError):
    """Raised when a store operation (list, save, delete) fails."""

    def __init__(self, operation: str, reason: Optional[str] = None):
        message = f"Store operation failed: {operation}"
        details = {"operation": operation, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# RENDER ERRORS
# =============================================================================

class RenderError(TemplateStudioError):
    """Base exception for rendering errors."""
    pass


class ImageLoadError(RenderError):
    """Raised when an image element source cannot be loaded or decoded."""

    def __init__(self, source: str, reason: Optional[str] = None):
        # Data URLs can be huge, keep the message readable
        shown = source if len(source) <= 80 else source[:77] + "..."
        message = f"Failed to load image: {shown}"
        details = {"reason": reason}
        super().__init__(message, details)


# =============================================================================
# OUTPUT ERRORS
# =============================================================================

class OutputError(TemplateStudioError):
    """Base exception for output handling errors."""
    pass


class CsvExportError(OutputError):
    """Raised when CSV export fails."""

    def __init__(self, filepath: str, reason: Optional[str] = None):
        message = f"Failed to export CSV file: {filepath}"
        details = {"filepath": filepath, "reason": reason}
        super().__init__(message, details)


class ExcelExportError(OutputError):
    """Raised when Excel export fails."""

    def __init__(self, filepath: str, reason: Optional[str] = None):
        message = f"Failed to export Excel file: {filepath}"
        details = {"filepath": filepath, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# INPUT ERRORS
# =============================================================================

class InputError(TemplateStudioError):
    """Base exception for document intake errors."""
    pass


class UnsupportedFileTypeError(InputError):
    """
    Raised when an unsupported file type is queued.

    Example:
        >>> raise UnsupportedFileTypeError("text/plain", ["application/pdf"])
    """

    def __init__(self, file_type: str, supported_types: List[str]):
        message = f"Unsupported file type: '{file_type}'"
        details = {"file_type": file_type, "supported_types": supported_types}
        super().__init__(message, details)


class FileTooLargeError(InputError):
    """Raised when a queued file exceeds the size limit."""

    def __init__(self, filename: str, size: int, max_size: int):
        message = f"File too large: {filename}"
        details = {"size": size, "max_size": max_size}
        super().__init__(message, details)


__all__ = [
    'TemplateStudioError',
    'TemplateError',
    'InvalidElementError',
    'RecordError',
    'RecordEditError',
    'ExtractionError',
    'PersistenceError',
    'RenderError',
    'ImageLoadError',
    'OutputError',
    'CsvExportError',
    'ExcelExportError',
    'InputError',
    'UnsupportedFileTypeError',
    'FileTooLargeError',
]
