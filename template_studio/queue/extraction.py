"""
Extraction Result and Extractor Interface.

The extractor is an external vision-language model service. It receives
a binary document, its MIME type and a document-kind tag and answers
with a confidence-annotated record:

    {data, confidence_scores, average_confidence, extracted_text?}

Every field of ``data`` may be missing; nothing here assumes a complete
schema.

Author: ML Engineering Team
"""

import asyncio
import base64
import json
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import aiohttp

from config import get_config
from template_studio.model.document import DocumentKind, InvoiceData
from template_studio.utils.exceptions import ExtractionError
from template_studio.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

_FENCE_START = re.compile(r'^```(?:json)?')
_FENCE_END = re.compile(r'```$')


def parse_model_json(text: Optional[str], source: Optional[str] = None) -> Any:
    """
    Parse a model's JSON answer, tolerating a surrounding code fence.

    Args:
        text: Raw response text.
        source: Filename used in error messages.

    Returns:
        Parsed JSON value.

    Raises:
        ExtractionError: If the text is empty or not valid JSON.
    """
    if not text:
        raise ExtractionError(source, "No response text received from the extractor")
    cleaned = _FENCE_END.sub('', _FENCE_START.sub('', text.strip())).strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        logger.debug(f"Unparsable extractor response: {text[:200]!r}")
        raise ExtractionError(
            source,
            "Failed to parse extractor response. The document might be too large or the output was truncated."
        )


@dataclass
class ExtractionResult:
    """
    Represents the result of document field extraction.

    Attributes:
        data: Document-data mapping for the requested kind (camelCase keys).
        confidence_scores: Confidence per field path (0-1).
        extracted_text: Optional raw text the model read.
        source_file: Source filename.
        kind: Document kind requested.
        extraction_timestamp: When extraction was performed.
        model_name: Name of the model used.
        processing_time: Seconds spent in the extractor.
        success: Whether extraction was successful.
        errors: List of errors encountered.
        warnings: List of warnings, e.g. low-confidence fields.

    Example:
        >>> result = ExtractionResult.from_response({
        ...     "data": {"metadata": {"invoiceNumber": "INV-1"}},
        ...     "confidence_scores": {"metadata.invoiceNumber": 0.9},
        ... })
        >>> result.average_confidence
        0.9
    """
    data: Dict[str, Any] = field(default_factory=dict)
    confidence_scores: Dict[str, float] = field(default_factory=dict)
    extracted_text: Optional[str] = None
    reported_confidence: Optional[float] = None

    # Metadata
    source_file: Optional[str] = None
    kind: DocumentKind = DocumentKind.INVOICE
    extraction_timestamp: Optional[str] = None
    model_name: Optional[str] = None
    processing_time: float = 0.0

    # Status
    success: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def __post_init__(self):
        """Initialize timestamp if not provided."""
        if self.extraction_timestamp is None:
            self.extraction_timestamp = datetime.now().isoformat()

    @property
    def average_confidence(self) -> float:
        """
        Average confidence, as reported by the extractor when present.

        Returns:
            Average confidence score (0-1).
        """
        if self.reported_confidence is not None:
            return float(self.reported_confidence)
        if not self.confidence_scores:
            return 0.0
        return sum(self.confidence_scores.values()) / len(self.confidence_scores)

    def get_confidence(self, field_name: str) -> float:
        return float(self.confidence_scores.get(field_name, 0.0))

    def low_confidence_fields(self, threshold: float) -> List[str]:
        return [name for name, score in self.confidence_scores.items() if score < threshold]

    def add_error(self, error: str) -> None:
        """Add an error message."""
        self.errors.append(error)
        self.success = False

    def add_warning(self, warning: str) -> None:
        """Add a warning message."""
        self.warnings.append(warning)

    def to_record(self) -> InvoiceData:
        """Document-data record built from the (possibly partial) data."""
        record = InvoiceData.from_dict(self.data if isinstance(self.data, dict) else {})
        if record.original_file_name is None:
            record.original_file_name = self.source_file
        return record

    def to_dict(self) -> Dict[str, Any]:
        return {
            'data': self.data,
            'confidence_scores': self.confidence_scores,
            'average_confidence': self.average_confidence,
            'extracted_text': self.extracted_text,
            'source_file': self.source_file,
            'kind': DocumentKind(self.kind).value,
            'extraction_timestamp': self.extraction_timestamp,
            'model_name': self.model_name,
            'processing_time': self.processing_time,
            'success': self.success,
            'errors': self.errors,
            'warnings': self.warnings,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_response(
        cls,
        response: Any,
        source_file: Optional[str] = None,
        kind: DocumentKind = DocumentKind.INVOICE
    ) -> 'ExtractionResult':
        """
        Build a result from the extractor's answer.

        Answers without a ``data`` envelope are taken as the data itself.

        Raises:
            ExtractionError: If the answer is not a JSON object.
        """
        if not isinstance(response, dict):
            raise ExtractionError(source_file, "Extractor response is not a JSON object")
        if isinstance(response.get('data'), dict):
            data = response['data']
        else:
            data = {k: v for k, v in response.items()
                    if k not in ('confidence_scores', 'average_confidence', 'extracted_text')}

        scores = {}
        for name, score in (response.get('confidence_scores') or {}).items():
            try:
                scores[name] = float(score)
            except (TypeError, ValueError):
                logger.debug(f"Ignoring non-numeric confidence for '{name}': {score!r}")

        reported = response.get('average_confidence')
        return cls(
            data=data,
            confidence_scores=scores,
            extracted_text=response.get('extracted_text'),
            reported_confidence=float(reported) if isinstance(reported, (int, float)) else None,
            source_file=source_file,
            kind=DocumentKind(kind),
        )


class Extractor(ABC):
    """Collaborator that turns a document into an ExtractionResult."""

    @abstractmethod
    async def extract(
        self,
        content: bytes,
        mime_type: str,
        kind: DocumentKind,
        filename: Optional[str] = None
    ) -> ExtractionResult:
        """
        Extract a document.

        Raises:
            ExtractionError: On network, model or parse failure.
        """


class HttpExtractor(Extractor):
    """
    Extractor reached over HTTP.

    Posts {content (base64), mimeType, kind} as JSON and parses the JSON
    answer, code fence tolerated.

    Attributes:
        endpoint: Extraction service URL.
        timeout: Request timeout in seconds.
        model_name: Reported in results.
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        timeout: Optional[float] = None,
        model_name: Optional[str] = None
    ) -> None:
        self.endpoint = endpoint or get_config("extraction.endpoint", "")
        self.timeout = float(timeout or get_config("extraction.timeout_seconds", 120))
        self.model_name = model_name or get_config("extraction.model_name", "vision-language-model")
        if not self.endpoint:
            logger.warning("No extraction endpoint configured")

    async def extract(
        self,
        content: bytes,
        mime_type: str,
        kind: DocumentKind,
        filename: Optional[str] = None
    ) -> ExtractionResult:
        if not self.endpoint:
            raise ExtractionError(filename, "no extraction endpoint configured")

        payload = {
            'content': base64.b64encode(content).decode('ascii'),
            'mimeType': mime_type,
            'kind': DocumentKind(kind).value,
        }
        start = time.time()
        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.endpoint, json=payload) as response:
                    if response.status != 200:
                        raise ExtractionError(filename, f"HTTP {response.status}")
                    text = await response.text()
        except aiohttp.ClientError as e:
            raise ExtractionError(filename, str(e))
        except asyncio.TimeoutError:
            raise ExtractionError(filename, f"timed out after {self.timeout:.0f}s")

        result = ExtractionResult.from_response(parse_model_json(text, filename), filename, kind)
        result.model_name = self.model_name
        result.processing_time = time.time() - start
        logger.debug(f"Extracted {filename} in {result.processing_time:.2f}s")
        return result
