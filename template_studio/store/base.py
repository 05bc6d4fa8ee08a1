"""
Store Interfaces.

The editor and queue only need asynchronous list/save/delete operations
on templates and rates plus a raise-on-failure contract. Implementations
raise PersistenceError for every storage failure.

Author: ML Engineering Team
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

from template_studio.model.template import TemplateData
from template_studio.rates.rate import RateItem

UNTITLED_TEMPLATE_NAME = "Untitled Template"


class TemplateStore(ABC):
    """Persistence for templates, stored as {id, name, data} rows."""

    @abstractmethod
    async def list_templates(self) -> List[TemplateData]:
        """All templates, most recently updated first."""

    @abstractmethod
    async def save_template(self, template: TemplateData) -> TemplateData:
        """
        Insert a template without an id, update one with an id.

        Returns:
            The stored template, carrying its id.
        """

    @abstractmethod
    async def delete_template(self, template_id: str) -> None:
        """Remove a template by id."""


class RateStore(ABC):
    """Persistence for the rate catalog."""

    @abstractmethod
    async def list_rates(self) -> List[RateItem]:
        """All rates ordered by reference number."""

    @abstractmethod
    async def insert_rates(self, rates: Sequence[RateItem]) -> List[RateItem]:
        """Insert new rates and return them with their ids."""

    @abstractmethod
    async def upsert_rates(self, rates: Sequence[RateItem]) -> List[RateItem]:
        """Insert rates, updating existing ones with the same reference number."""

    @abstractmethod
    async def update_rate(self, rate: RateItem) -> RateItem:
        """Update a rate by id."""

    @abstractmethod
    async def delete_rate(self, rate_id: str) -> None:
        """Remove a rate by id."""

    @abstractmethod
    async def delete_all_rates(self) -> int:
        """Empty the catalog; returns the number removed."""
