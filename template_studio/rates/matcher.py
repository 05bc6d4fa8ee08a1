"""
Rate Matcher Module.

Finds catalog rates for an extracted document's reference string and
applies a chosen set of rates to the document's line items.

Reference strings are short and collisions are plausible, so matching
never picks a single winner: every candidate is returned, best kind
first, and the caller decides.

Matching kinds:
    - EXACT: case-insensitive equality after trimming
    - CONTAINS: one reference contains the other
    - SIMILAR: difflib ratio at or above the configured threshold

Author: ML Engineering Team
"""

import re
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from enum import Enum
from typing import Iterable, List, Optional, Pattern, Sequence

from config import get_config
from template_studio.model.document import InvoiceData, SummaryLine
from template_studio.utils.logger import get_logger
from .rate import RateItem

# Initialize module logger
logger = get_logger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.97
DEFAULT_OVERTIME_KEYWORDS = ("overtime", "ot", "o.t")

OVERTIME_MATCH_WORD = "word"
OVERTIME_MATCH_SUBSTRING = "substring"
OVERTIME_MATCH_MODES = (OVERTIME_MATCH_WORD, OVERTIME_MATCH_SUBSTRING)


class MatchKind(str, Enum):
    EXACT = "exact"
    CONTAINS = "contains"
    SIMILAR = "similar"


_KIND_ORDER = {MatchKind.EXACT: 0, MatchKind.CONTAINS: 1, MatchKind.SIMILAR: 2}


@dataclass(frozen=True)
class RateMatch:
    """A candidate rate and how it matched."""
    rate: RateItem
    kind: MatchKind
    score: float


@dataclass
class RateSuggestion:
    """
    Candidate rates offered for one document.

    Attributes:
        reference: The document's reference string as extracted.
        matches: Candidates, best kind first.
        invoice_number: Invoice number to apply with the rates; editable
            by the user before applying.
    """
    reference: str
    matches: List[RateMatch] = field(default_factory=list)
    invoice_number: str = ''

    @property
    def rates(self) -> List[RateItem]:
        return [m.rate for m in self.matches]


def _normalize(reference: Optional[str]) -> str:
    return str(reference or '').strip().lower()


def _keyword_pattern(keywords: Iterable[str], mode: str = OVERTIME_MATCH_WORD) -> Pattern:
    """
    Alternation of the keywords; keywords such as "o.t" are matched literally.

    In word mode a keyword must stand on its own ("ot" misses "Hotel");
    in substring mode it may appear anywhere in the description.

    Raises:
        ValueError: For an unknown mode.
    """
    if mode not in OVERTIME_MATCH_MODES:
        raise ValueError(f"Unknown overtime match mode: {mode!r} (expected one of {', '.join(OVERTIME_MATCH_MODES)})")
    words = sorted((re.escape(k.strip().lower()) for k in keywords if k and k.strip()), key=len, reverse=True)
    alternation = '(?:' + '|'.join(words) + ')'
    if mode == OVERTIME_MATCH_SUBSTRING:
        return re.compile(alternation)
    return re.compile(r'(?<![a-z0-9])' + alternation + r'(?![a-z0-9])')


class RateMatcher:
    """
    Matches document references against a rate catalog.

    Attributes:
        threshold: Minimum similarity ratio for a SIMILAR match.
        overtime_keywords: Words that mark a line as overtime.
        overtime_match: "word" or "substring" keyword matching.

    Example:
        >>> matcher = RateMatcher()
        >>> matches = matcher.find("comp1-itp-001 rev2", [RateItem("COMP1-ITP-001")])
        >>> matches[0].kind
        <MatchKind.CONTAINS: 'contains'>
    """

    def __init__(
        self,
        threshold: Optional[float] = None,
        overtime_keywords: Optional[Sequence[str]] = None,
        overtime_match: Optional[str] = None
    ) -> None:
        self.threshold = float(
            threshold if threshold is not None
            else get_config("rates.similarity_threshold", DEFAULT_SIMILARITY_THRESHOLD)
        )
        self.overtime_keywords = list(
            overtime_keywords if overtime_keywords is not None
            else get_config("rates.overtime_keywords", list(DEFAULT_OVERTIME_KEYWORDS))
        )
        self.overtime_match = str(
            overtime_match or get_config("rates.overtime_match", OVERTIME_MATCH_WORD)
        ).strip().lower()
        self._overtime = (
            _keyword_pattern(self.overtime_keywords, self.overtime_match) if self.overtime_keywords else None
        )

    # -------------------------------------------------------------------------
    # Finding candidates
    # -------------------------------------------------------------------------

    def classify(self, reference: str, rate: RateItem) -> Optional[RateMatch]:
        """Match one catalog rate against a document reference."""
        doc_ref = _normalize(reference)
        rate_ref = _normalize(rate.reference_no)
        if not doc_ref or not rate_ref:
            return None
        if doc_ref == rate_ref:
            return RateMatch(rate, MatchKind.EXACT, 1.0)
        if rate_ref in doc_ref or doc_ref in rate_ref:
            return RateMatch(rate, MatchKind.CONTAINS, SequenceMatcher(None, doc_ref, rate_ref).ratio())
        score = SequenceMatcher(None, doc_ref, rate_ref).ratio()
        if score >= self.threshold:
            return RateMatch(rate, MatchKind.SIMILAR, score)
        return None

    def find(self, reference: Optional[str], catalog: Iterable[RateItem]) -> List[RateMatch]:
        """
        Find every candidate rate for a reference.

        Args:
            reference: Reference string from the document (e.g. clientRef).
            catalog: Rates to search.

        Returns:
            Candidates ordered by kind (exact, contains, similar), then by
            catalog order. Empty when the reference is blank.
        """
        if not _normalize(reference):
            return []
        matches = [m for m in (self.classify(reference, rate) for rate in catalog) if m is not None]
        matches.sort(key=lambda m: _KIND_ORDER[m.kind])
        logger.debug(f"Reference '{reference}' matched {len(matches)} rate(s)")
        return matches

    def suggest(self, record: InvoiceData, catalog: Iterable[RateItem]) -> Optional[RateSuggestion]:
        """Build a suggestion from the record's client reference, None if nothing matches."""
        reference = record.metadata.client_ref or ''
        matches = self.find(reference, catalog)
        if not matches:
            return None
        return RateSuggestion(
            reference=reference,
            matches=matches,
            invoice_number=record.metadata.invoice_number or '',
        )

    # -------------------------------------------------------------------------
    # Applying rates
    # -------------------------------------------------------------------------

    def is_overtime(self, description: Optional[str]) -> bool:
        if not self._overtime or not description:
            return False
        return bool(self._overtime.search(description.lower()))

    def rate_for_line(self, line: SummaryLine, rate: RateItem) -> float:
        """Overtime rate for overtime lines when one is set, else the base rate."""
        if self.is_overtime(line.description) and rate.has_overtime_rate:
            return rate.ot_rate
        return rate.rate

    def rate_for_description(self, description: str, rates: Sequence[RateItem]) -> Optional[RateItem]:
        """First rate whose description occurs in the line description."""
        text = _normalize(description)
        for rate in rates:
            needle = _normalize(rate.description)
            if needle and needle in text:
                return rate
        return None

    def apply_rate(self, line: SummaryLine, rate: RateItem) -> SummaryLine:
        """Set a line's rate and unit from a catalog rate; its total follows."""
        line.rate = self.rate_for_line(line, rate)
        line.unit = rate.unit or line.unit
        return line

    def apply(
        self,
        record: InvoiceData,
        rates: Sequence[RateItem],
        invoice_number: Optional[str] = None
    ) -> InvoiceData:
        """
        Apply rates to a copy of a record.

        Each line takes the first rate whose description it contains;
        lines without one are left alone. The document currency follows
        the first rate that has a currency.

        Args:
            record: Record to update; not modified.
            rates: Rates to apply, in preference order.
            invoice_number: Replaces the record's invoice number when given.

        Returns:
            Updated copy with recomputed totals.
        """
        updated = record.copy()
        applied = 0
        for line in updated.summary:
            rate = self.rate_for_description(line.description, rates)
            if rate is not None:
                self.apply_rate(line, rate)
                applied += 1

        if rates and rates[0].currency:
            updated.currency = rates[0].currency
            updated.metadata.currency = rates[0].currency
        if invoice_number is not None:
            updated.metadata.invoice_number = invoice_number

        logger.info(
            f"Applied rates to {applied}/{len(updated.summary)} line(s), "
            f"grand total {updated.grand_total:.2f} {updated.currency}"
        )
        return updated

    def apply_suggestion(self, record: InvoiceData, suggestion: RateSuggestion) -> InvoiceData:
        return self.apply(record, suggestion.rates, suggestion.invoice_number)
