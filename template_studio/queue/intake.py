"""
Document Intake Module.

Validates uploaded documents before they enter the queue: supported
MIME type, non-empty, and within the size limit.

Author: ML Engineering Team
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from config import get_config
from template_studio.utils.exceptions import FileTooLargeError, InputError, UnsupportedFileTypeError
from template_studio.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024

DEFAULT_MIME_TYPES = ["application/pdf", "image/jpeg", "image/png", "image/webp"]

# Extension to MIME type for files read from disk
EXTENSION_MIME_TYPES: Dict[str, str] = {
    '.pdf': 'application/pdf',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.webp': 'image/webp',
}


@dataclass
class IntakeFile:
    """
    A validated document ready for extraction.

    Attributes:
        filename: Original filename.
        content: File bytes.
        mime_type: Validated MIME type.
    """
    filename: str
    content: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.content)

    def __repr__(self) -> str:
        return f"IntakeFile(filename='{self.filename}', type='{self.mime_type}', size={self.size})"


class DocumentIntake:
    """
    Upload validation.

    Attributes:
        supported_mime_types: Accepted MIME types.
        max_file_size: Maximum size in bytes.

    Example:
        >>> intake = DocumentIntake()
        >>> item = intake.load("timesheet.pdf")
        >>> item.mime_type
        'application/pdf'
    """

    def __init__(
        self,
        supported_mime_types: Optional[List[str]] = None,
        max_file_size: Optional[int] = None
    ) -> None:
        self.supported_mime_types = [
            m.lower() for m in (supported_mime_types or get_config("queue.supported_mime_types", DEFAULT_MIME_TYPES))
        ]
        self.max_file_size = int(max_file_size or get_config("queue.max_file_size", DEFAULT_MAX_FILE_SIZE))

    @staticmethod
    def guess_mime_type(filename: str) -> Optional[str]:
        return EXTENSION_MIME_TYPES.get(Path(filename).suffix.lower())

    def accept(self, filename: str, content: bytes, mime_type: Optional[str] = None) -> IntakeFile:
        """
        Validate an uploaded document.

        Args:
            filename: Original filename.
            content: File bytes.
            mime_type: Declared MIME type; guessed from the extension when omitted.

        Returns:
            IntakeFile.

        Raises:
            UnsupportedFileTypeError: If the type is not accepted.
            InputError: If the file is empty.
            FileTooLargeError: If the file exceeds the size limit.
        """
        mime_type = (mime_type or self.guess_mime_type(filename) or '').lower()
        if mime_type not in self.supported_mime_types:
            raise UnsupportedFileTypeError(mime_type or Path(filename).suffix, self.supported_mime_types)
        if not content:
            raise InputError(f"File is empty: {filename}", {"filename": filename})
        if len(content) > self.max_file_size:
            raise FileTooLargeError(filename, len(content), self.max_file_size)

        logger.debug(f"Accepted {filename} ({mime_type}, {len(content)} bytes)")
        return IntakeFile(filename=filename, content=content, mime_type=mime_type)

    def load(self, filepath: Union[str, Path]) -> IntakeFile:
        """
        Read and validate a document from disk.

        Raises:
            FileNotFoundError: If the file doesn't exist.
        """
        path = Path(filepath)
        if not path.is_file():
            raise FileNotFoundError(str(filepath))
        return self.accept(path.name, path.read_bytes())
