"""
Extraction Post-Processor Module.

This module provides the RecordPostProcessor class that cleans an
extractor's raw record before it is merged with a template.

Operations:
    - Clean whitespace in metadata, line item and bank detail text
    - Coerce quantities and rates to numbers (unparsable values become 0)
    - Normalize the document date
    - Flag low-confidence fields

Author: ML Engineering Team
"""

from copy import deepcopy
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Dict, List

from config import get_config
from template_studio.utils.logger import get_logger
from .normalizers import AmountNormalizer, DateNormalizer, clean_text

if TYPE_CHECKING:
    from template_studio.queue.extraction import ExtractionResult

# Initialize module logger
logger = get_logger(__name__)

DATE_FIELDS = ('date',)
NUMERIC_LINE_FIELDS = ('quantity', 'rate')
TEXT_LINE_FIELDS = ('description', 'unit', 'lineText')


class RecordPostProcessor:
    """
    Post-processor for extraction results.

    The input result is never modified; a cleaned copy is returned.

    Attributes:
        date_normalizer: DateNormalizer instance.
        amount_normalizer: AmountNormalizer instance.
        confidence_threshold: Fields scored below this are flagged.

    Example:
        >>> processor = RecordPostProcessor()
        >>> cleaned = processor.process(extraction_result)
        >>> cleaned.data['summary'][0]['rate']
        350.0
    """

    def __init__(self) -> None:
        self.date_normalizer = DateNormalizer()
        self.amount_normalizer = AmountNormalizer()
        self.confidence_threshold = float(get_config("postprocessing.confidence_threshold", 0.6))
        logger.debug("RecordPostProcessor initialized")

    def process(self, result: "ExtractionResult") -> "ExtractionResult":
        """
        Clean an extraction result.

        Args:
            result: Result from the extractor.

        Returns:
            Cleaned copy with warnings for unparsable dates and
            low-confidence fields.
        """
        data = deepcopy(result.data) if isinstance(result.data, dict) else {}
        processed = replace(
            result,
            data=data,
            confidence_scores=dict(result.confidence_scores),
            errors=list(result.errors),
            warnings=list(result.warnings),
        )

        metadata = data.get('metadata')
        if isinstance(metadata, dict):
            self._clean_mapping(metadata)
            self._normalize_dates(metadata, processed)

        bank = data.get('bankDetails')
        if isinstance(bank, dict):
            self._clean_mapping(bank)

        summary = data.get('summary')
        if isinstance(summary, list):
            data['summary'] = [self._clean_line(line) for line in summary if isinstance(line, dict)]

        if isinstance(data.get('currency'), str):
            data['currency'] = data['currency'].strip().upper()

        self._flag_low_confidence(processed)
        logger.info(
            f"Post-processed {result.source_file or 'document'}: "
            f"{len(data.get('summary') or [])} line(s), {len(processed.warnings)} warning(s)"
        )
        return processed

    @staticmethod
    def _clean_mapping(values: Dict[str, Any]) -> None:
        for key, value in values.items():
            if isinstance(value, str):
                values[key] = clean_text(value)

    def _normalize_dates(self, metadata: Dict[str, Any], result: "ExtractionResult") -> None:
        for name in DATE_FIELDS:
            original = metadata.get(name)
            if not original:
                continue
            normalized = self.date_normalizer.normalize(original)
            if normalized:
                metadata[name] = normalized
                if normalized != original:
                    logger.debug(f"Normalized {name}: '{original}' -> '{normalized}'")
            else:
                result.add_warning(f"Could not normalize {name}: '{original}'")

    def _clean_line(self, line: Dict[str, Any]) -> Dict[str, Any]:
        cleaned = dict(line)
        for name in TEXT_LINE_FIELDS:
            if isinstance(cleaned.get(name), str):
                cleaned[name] = clean_text(cleaned[name])
        for name in NUMERIC_LINE_FIELDS:
            value = self.amount_normalizer.to_float(cleaned.get(name))
            if value is None:
                if cleaned.get(name) not in (None, ''):
                    logger.debug(f"Coerced unparsable {name} {cleaned.get(name)!r} to 0")
                value = 0.0
            cleaned[name] = value
        return cleaned

    def _flag_low_confidence(self, result: "ExtractionResult") -> List[str]:
        low = result.low_confidence_fields(self.confidence_threshold)
        for name in low:
            result.add_warning(f"Low confidence: {name} ({result.get_confidence(name):.2f})")
        if low:
            logger.warning(
                f"{result.source_file or 'document'}: {len(low)} field(s) below "
                f"confidence {self.confidence_threshold:.2f}: {', '.join(low)}"
            )
        return low
