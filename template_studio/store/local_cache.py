"""
Local Template Cache.

Keeps the last successfully loaded or saved template on disk as JSON so
the editor has something to open when the store is unreachable.

Author: ML Engineering Team
"""

import json
from pathlib import Path
from typing import Optional, Union

from config import get_config
from template_studio.model.template import TemplateData
from template_studio.utils.exceptions import TemplateError
from template_studio.utils.helpers import ensure_directory
from template_studio.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

CACHE_FILENAME = "invoice_template.json"


class LocalTemplateCache:
    """
    Single-slot JSON cache for one template.

    Example:
        >>> cache = LocalTemplateCache()
        >>> cache.store(template)
        >>> cache.load().name == template.name
        True
    """

    def __init__(self, path: Optional[Union[str, Path]] = None) -> None:
        if path:
            self.path = Path(path)
        else:
            self.path = Path(get_config("paths.cache_dir", ".cache")) / CACHE_FILENAME

    def store(self, template: TemplateData) -> None:
        """Overwrite the cached template. Write failures are logged, not raised."""
        try:
            ensure_directory(self.path.parent)
            self.path.write_text(json.dumps(template.to_dict(), ensure_ascii=False), encoding='utf-8')
            logger.debug(f"Cached template '{template.name}' at {self.path}")
        except OSError as e:
            logger.warning(f"Could not write template cache {self.path}: {e}")

    def load(self) -> Optional[TemplateData]:
        """The cached template, or None if there is none or it is unreadable."""
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding='utf-8'))
            if not isinstance(data, dict):
                logger.warning(f"Ignoring template cache {self.path}: expected an object, got {type(data).__name__}")
                return None
            return TemplateData.from_dict(data)
        except (OSError, ValueError, AttributeError, TypeError, TemplateError) as e:
            logger.warning(f"Ignoring unreadable template cache {self.path}: {e}")
            return None

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
