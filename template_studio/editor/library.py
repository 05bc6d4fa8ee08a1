"""
Template Library Module.

Connects an editor session to the template store: listing, opening,
saving, cloning and deleting templates.

Loading degrades gracefully. When the store is unreachable the library
falls back to the locally cached template, then to the built-in default,
so the editor always has a template with elements to work on. Saving and
deleting raise PersistenceError so the caller can show a failure notice.

Author: ML Engineering Team
"""

from typing import List, Optional

from template_studio.model.defaults import default_template
from template_studio.model.template import TemplateData
from template_studio.store.base import TemplateStore
from template_studio.store.local_cache import LocalTemplateCache
from template_studio.utils.exceptions import PersistenceError
from template_studio.utils.logger import get_logger
from .session import EditorSession

# Initialize module logger
logger = get_logger(__name__)


class TemplateLibrary:
    """
    Saved templates for one editor session.

    Attributes:
        store: Template store.
        cache: Local offline cache.
        templates: Templates from the last load.
        offline: True when the last load used the fallback.

    Example:
        >>> library = TemplateLibrary(InMemoryStore())
        >>> session = EditorSession()
        >>> asyncio.run(library.load(session))
        >>> asyncio.run(library.save(session))
    """

    def __init__(self, store: TemplateStore, cache: Optional[LocalTemplateCache] = None) -> None:
        self.store = store
        self.cache = cache or LocalTemplateCache()
        self.templates: List[TemplateData] = []
        self.offline = False

    async def refresh(self) -> List[TemplateData]:
        """
        Reload the template list, falling back to the local cache.

        Returns:
            Templates from the store, or the cached template alone when
            the store fails.
        """
        try:
            self.templates = await self.store.list_templates()
            self.offline = False
            if self.templates:
                self.cache.store(self.templates[0])
        except PersistenceError as e:
            logger.warning(f"Template store unavailable, using local fallback: {e}")
            cached = self.cache.load()
            self.templates = [cached] if cached is not None else []
            self.offline = True
        logger.info(f"Loaded {len(self.templates)} template(s){' (offline)' if self.offline else ''}")
        return self.templates

    async def load(self, session: EditorSession) -> TemplateData:
        """
        Refresh the list and give an unsaved session the first template.

        A session already editing a saved template keeps it. If nothing
        usable is available the built-in default is opened.

        Returns:
            The template the session is now editing.
        """
        await self.refresh()
        if session.template.id is None:
            usable = [t for t in self.templates if t.elements]
            if usable:
                session.open(usable[0])
            elif not session.template.elements:
                session.open(default_template())
        return session.template

    def find(self, template_id: str) -> Optional[TemplateData]:
        for template in self.templates:
            if template.id == template_id:
                return template
        return None

    def open(self, session: EditorSession, template_id: str) -> TemplateData:
        """
        Open a listed template; history is reset and the selection cleared.

        Raises:
            PersistenceError: If no listed template has this id.
        """
        template = self.find(template_id)
        if template is None:
            raise PersistenceError("open template", f"no template with id {template_id}")
        session.open(template)
        return template

    async def save(self, session: EditorSession) -> TemplateData:
        """
        Save the session's template; the stored copy becomes current.

        Raises:
            PersistenceError: If the store rejects the save.
        """
        try:
            saved = await self.store.save_template(session.template)
        except PersistenceError as e:
            logger.error(f"Failed to save template '{session.template.name}': {e}")
            raise
        session.mark_saved(saved)
        self.cache.store(saved)
        await self.refresh()
        logger.info(f"Template '{saved.name}' saved")
        return saved

    async def delete(self, session: EditorSession, template_id: str) -> None:
        """
        Delete a saved template.

        If it is the one being edited, the session moves to the next
        remaining template, or to a fresh one when none remain.

        Raises:
            PersistenceError: If the store rejects the delete.
        """
        try:
            await self.store.delete_template(template_id)
        except PersistenceError as e:
            logger.error(f"Failed to delete template {template_id}: {e}")
            raise
        remaining = await self.refresh()
        if session.template.id == template_id:
            if remaining:
                session.open(remaining[0])
            else:
                session.create_new()
