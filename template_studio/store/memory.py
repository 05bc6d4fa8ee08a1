"""
In-memory store, used by tests and as a session-local store for the CLI.
"""

import itertools
import uuid
from typing import Dict, List, Sequence

from template_studio.model.template import TemplateData
from template_studio.rates.rate import RateItem
from template_studio.utils.exceptions import PersistenceError
from template_studio.utils.logger import get_logger
from .base import RateStore, TemplateStore, UNTITLED_TEMPLATE_NAME

# Initialize module logger
logger = get_logger(__name__)


class InMemoryStore(TemplateStore, RateStore):
    """
    Dictionary-backed template and rate store.

    Setting ``available`` to False makes every call raise
    PersistenceError, which is how an unreachable backend looks to callers.

    Example:
        >>> store = InMemoryStore()
        >>> saved = asyncio.run(store.save_template(default_template()))
        >>> saved.id is not None
        True
    """

    def __init__(self, available: bool = True) -> None:
        self.available = available
        self._templates: Dict[str, dict] = {}
        self._updated: Dict[str, int] = {}
        self._rates: Dict[str, RateItem] = {}
        self._clock = itertools.count()

    def _check(self, operation: str) -> None:
        if not self.available:
            raise PersistenceError(operation, "store unavailable")

    # -------------------------------------------------------------------------
    # Templates
    # -------------------------------------------------------------------------

    async def list_templates(self) -> List[TemplateData]:
        self._check("list templates")
        ids = sorted(self._templates, key=lambda i: self._updated[i], reverse=True)
        return [TemplateData.from_row(self._templates[i]) for i in ids]

    async def save_template(self, template: TemplateData) -> TemplateData:
        self._check("save template")
        if template.id is not None and template.id not in self._templates:
            raise PersistenceError("save template", f"no template with id {template.id}")

        row = template.to_row()
        row['id'] = template.id or uuid.uuid4().hex
        row['name'] = template.name or UNTITLED_TEMPLATE_NAME
        self._templates[row['id']] = row
        self._updated[row['id']] = next(self._clock)
        logger.debug(f"Saved template '{row['name']}' ({row['id']})")
        return TemplateData.from_row(row)

    async def delete_template(self, template_id: str) -> None:
        self._check("delete template")
        self._templates.pop(template_id, None)
        self._updated.pop(template_id, None)

    # -------------------------------------------------------------------------
    # Rates
    # -------------------------------------------------------------------------

    async def list_rates(self) -> List[RateItem]:
        self._check("list rates")
        return sorted(self._rates.values(), key=lambda r: r.reference_no)

    async def insert_rates(self, rates: Sequence[RateItem]) -> List[RateItem]:
        self._check("insert rates")
        inserted = []
        for rate in rates:
            stored = rate.with_id(uuid.uuid4().hex)
            self._rates[stored.id] = stored
            inserted.append(stored)
        return inserted

    async def upsert_rates(self, rates: Sequence[RateItem]) -> List[RateItem]:
        self._check("upsert rates")
        by_reference = {r.reference_no: r.id for r in self._rates.values()}
        stored = []
        for rate in rates:
            rate_id = by_reference.get(rate.reference_no) or uuid.uuid4().hex
            item = rate.with_id(rate_id)
            self._rates[rate_id] = item
            by_reference[rate.reference_no] = rate_id
            stored.append(item)
        return stored

    async def update_rate(self, rate: RateItem) -> RateItem:
        self._check("update rate")
        if not rate.id:
            raise PersistenceError("update rate", "rate id is required for update")
        if rate.id not in self._rates:
            raise PersistenceError("update rate", f"no rate with id {rate.id}")
        self._rates[rate.id] = rate
        return rate

    async def delete_rate(self, rate_id: str) -> None:
        self._check("delete rate")
        self._rates.pop(rate_id, None)

    async def delete_all_rates(self) -> int:
        self._check("delete rates")
        count = len(self._rates)
        self._rates.clear()
        return count
