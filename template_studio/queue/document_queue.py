"""
Document Queue Module.

Runs uploaded documents through extraction, post-processing and the
template merge. Every item is an independent asyncio pipeline with its
own status:

    pending -> processing -> success | error

A failed item never affects its siblings and is not retried. Discarding
an item while its pipeline is in flight is allowed; the late result is
ignored.

For timesheets the queue also looks up catalog rates for the document's
client reference and offers them as a suggestion the user can apply or
skip.

Author: ML Engineering Team
"""

import asyncio
import io
import uuid
import zipfile
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from config import get_config
from template_studio.model.defaults import default_template
from template_studio.model.document import DocumentKind, InvoiceData
from template_studio.model.template import TemplateData
from template_studio.postprocessor.processor import RecordPostProcessor
from template_studio.rates.matcher import RateMatcher, RateSuggestion
from template_studio.rates.rate import RateItem
from template_studio.utils.exceptions import TemplateStudioError
from template_studio.utils.helpers import ensure_directory
from template_studio.utils.logger import document_logger, get_logger
from .extraction import ExtractionResult, Extractor
from .intake import IntakeFile

# Initialize module logger
logger = get_logger(__name__)

FAILURE_MESSAGE = "Analysis failed"


class QueueStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class QueueItem:
    """
    One queued document.

    Attributes:
        id: Short random id.
        file: Validated upload.
        status: Pipeline status.
        result: Merged record once successful.
        template: Template snapshot the record was merged with.
        extraction: Post-processed extraction result.
        suggestion: Pending rate suggestion, timesheets only.
        message: Short error message for failed items.
    """
    file: IntakeFile
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:9])
    status: QueueStatus = QueueStatus.PENDING
    result: Optional[InvoiceData] = None
    template: Optional[TemplateData] = None
    extraction: Optional[ExtractionResult] = None
    suggestion: Optional[RateSuggestion] = None
    message: Optional[str] = None

    @property
    def filename(self) -> str:
        return self.file.filename


class DocumentQueue:
    """
    Queue of documents of one kind.

    Attributes:
        kind: Document kind sent to the extractor and used for the merge.
        extractor: Extraction collaborator.
        template: Template new items are merged with.
        rates: Rate catalog used for timesheet suggestions.

    Example:
        >>> queue = DocumentQueue(DocumentKind.TIMESHEET, extractor, template, rates)
        >>> queue.add_files([intake.load("sheet.pdf")])
        >>> asyncio.run(queue.process_pending())
        >>> for item in queue.pending_suggestions():
        ...     queue.apply_suggestion(item.id)
    """

    def __init__(
        self,
        kind: Union[DocumentKind, str],
        extractor: Extractor,
        template: Optional[TemplateData] = None,
        rates: Optional[Sequence[RateItem]] = None,
        matcher: Optional[RateMatcher] = None,
        postprocessor: Optional[RecordPostProcessor] = None,
        renderer=None
    ) -> None:
        self.kind = DocumentKind(kind)
        self.extractor = extractor
        self.template = template or default_template()
        self.rates: List[RateItem] = list(rates or [])
        self.matcher = matcher or RateMatcher()
        self.postprocessor = postprocessor or RecordPostProcessor()
        self._renderer = renderer
        self._items: Dict[str, QueueItem] = {}

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    @property
    def items(self) -> List[QueueItem]:
        return list(self._items.values())

    def get(self, item_id: str) -> Optional[QueueItem]:
        return self._items.get(item_id)

    def add_files(self, files: Iterable[IntakeFile]) -> List[QueueItem]:
        """Queue validated uploads as pending items."""
        added = [QueueItem(file=f) for f in files]
        for item in added:
            self._items[item.id] = item
        logger.info(f"Queued {len(added)} {self.kind.value} document(s)")
        return added

    def discard(self, item_id: str) -> bool:
        """Remove an item; an in-flight pipeline for it is ignored when it finishes."""
        return self._items.pop(item_id, None) is not None

    def is_live(self, item: QueueItem) -> bool:
        return self._items.get(item.id) is item

    def successful_items(self) -> List[QueueItem]:
        return [i for i in self._items.values() if i.status == QueueStatus.SUCCESS and i.result is not None]

    def pending_suggestions(self) -> List[QueueItem]:
        return [i for i in self._items.values() if i.suggestion is not None]

    # -------------------------------------------------------------------------
    # Pipelines
    # -------------------------------------------------------------------------

    async def process_item(self, item: QueueItem) -> QueueItem:
        """
        Extract, clean and merge one document.

        Failures are recorded on the item and never raised.
        """
        template = self.template
        log = document_logger(logger, item.filename)
        item.status = QueueStatus.PROCESSING
        item.message = None
        try:
            raw = await self.extractor.extract(item.file.content, item.file.mime_type, self.kind, item.filename)
            extraction = self.postprocessor.process(raw)
            record = extraction.to_record()
            record.original_file_name = item.filename

            suggestion = None
            if self.kind == DocumentKind.TIMESHEET and self.rates:
                suggestion = self.matcher.suggest(record, self.rates)

            merged = record.merge_with_template(template, self.kind)
        except TemplateStudioError as e:
            return self._fail(item, e)
        except Exception as e:
            log.exception("Unexpected failure during processing")
            return self._fail(item, e)

        if not self.is_live(item):
            log.debug(f"Ignoring result for discarded item {item.id}")
            return item

        item.extraction = extraction
        item.template = template
        item.result = merged
        item.suggestion = suggestion
        item.status = QueueStatus.SUCCESS
        if suggestion is not None:
            log.info(f"{len(suggestion.matches)} rate(s) match reference '{suggestion.reference}'")
        log.info(f"Processed: grand total {merged.grand_total:.2f} {merged.currency}")
        return item

    def _fail(self, item: QueueItem, error: Exception) -> QueueItem:
        if self.is_live(item):
            item.status = QueueStatus.ERROR
            item.message = FAILURE_MESSAGE
            document_logger(logger, item.filename).error(f"Extraction failed: {error}")
        return item

    async def process_pending(self) -> List[QueueItem]:
        """Run every pending item concurrently; completion order does not matter."""
        pending = [i for i in self._items.values() if i.status == QueueStatus.PENDING]
        if not pending:
            return []
        return list(await asyncio.gather(*(self.process_item(i) for i in pending)))

    # -------------------------------------------------------------------------
    # Suggestions and edits
    # -------------------------------------------------------------------------

    def apply_suggestion(self, item_id: str, invoice_number: Optional[str] = None) -> InvoiceData:
        """
        Apply an item's suggested rates to its record.

        Args:
            item_id: Queue item.
            invoice_number: Overrides the suggested invoice number.

        Returns:
            The updated record.

        Raises:
            KeyError: If the item has no pending suggestion.
        """
        item = self._items.get(item_id)
        if item is None or item.suggestion is None or item.result is None:
            raise KeyError(f"No rate suggestion for item {item_id}")
        suggestion = item.suggestion
        if invoice_number is not None:
            suggestion.invoice_number = invoice_number
        item.result = self.matcher.apply_suggestion(item.result, suggestion)
        item.suggestion = None
        return item.result

    def skip_suggestion(self, item_id: str) -> None:
        item = self._items.get(item_id)
        if item is not None:
            item.suggestion = None

    def edit_result(self, item_id: str, json_text: str) -> InvoiceData:
        """
        Replace an item's record from manually edited JSON.

        Raises:
            KeyError: If the item has no record.
            RecordEditError: If the JSON is invalid; the record is unchanged.
        """
        item = self._items.get(item_id)
        if item is None or item.result is None:
            raise KeyError(f"No record for item {item_id}")
        item.result.apply_json_edit(json_text)
        return item.result

    # -------------------------------------------------------------------------
    # Batch export
    # -------------------------------------------------------------------------

    def batch_filename(self, when: Optional[datetime] = None) -> str:
        pattern = get_config("output.batch.filename_pattern", "{kind}_batch_{date}.zip")
        return pattern.format(kind=self.kind.value, date=(when or datetime.now()).strftime("%Y-%m-%d"))

    async def build_batch_archive(self) -> Tuple[str, bytes]:
        """
        Render every successful item to PDF and zip them.

        Documents are named from their invoice numbers; clashing names
        get a numeric suffix.

        Returns:
            (archive filename, archive bytes)
        """
        if self._renderer is None:
            from template_studio.rendering.pdf_renderer import PdfRenderer
            self._renderer = PdfRenderer()

        buffer = io.BytesIO()
        used: Dict[str, int] = {}
        with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_DEFLATED) as archive:
            for item in self.successful_items():
                document = await self._renderer.arender(item.template or self.template, item.result)
                name = document.filename
                if name in used:
                    used[name] += 1
                    stem, suffix = Path(name).stem, Path(name).suffix
                    name = f"{stem}_{used[document.filename]}{suffix}"
                else:
                    used[name] = 1
                archive.writestr(name, document.content)

        logger.info(f"Batch archive contains {sum(used.values())} document(s)")
        return self.batch_filename(), buffer.getvalue()

    async def export_batch(self, output_dir: Union[str, Path, None] = None) -> Path:
        """Write the batch archive into a directory and return its path."""
        filename, content = await self.build_batch_archive()
        directory = ensure_directory(output_dir or get_config("paths.output_dir", "outputs"))
        path = directory / filename
        path.write_bytes(content)
        logger.info(f"Batch archive saved to: {path}")
        return path
