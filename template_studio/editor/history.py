"""
Undo/redo history of whole-template snapshots.

Snapshots are immutable TemplateData values, so storing them costs no
copying. Pushing truncates the redo tail; the oldest snapshot is
dropped once the limit is exceeded.
"""

from typing import List, Optional

from config import get_config
from template_studio.model.template import TemplateData


class History:
    """
    Bounded snapshot history with a current index.

    Example:
        >>> history = History(initial)
        >>> history.push(changed)
        >>> history.undo() is initial
        True
    """

    def __init__(self, initial: TemplateData, limit: Optional[int] = None) -> None:
        self.limit = max(1, int(limit if limit is not None else get_config("editor.history_limit", 50)))
        self._snapshots: List[TemplateData] = [initial]
        self._index = 0

    @property
    def current(self) -> TemplateData:
        return self._snapshots[self._index]

    @property
    def index(self) -> int:
        return self._index

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._snapshots) - 1

    def push(self, snapshot: TemplateData) -> None:
        """Record a committed state, discarding any redo tail."""
        del self._snapshots[self._index + 1:]
        self._snapshots.append(snapshot)
        if len(self._snapshots) > self.limit:
            del self._snapshots[0]
        self._index = len(self._snapshots) - 1

    def undo(self) -> TemplateData:
        """Step back; a no-op at the oldest snapshot."""
        if self.can_undo:
            self._index -= 1
        return self.current

    def redo(self) -> TemplateData:
        """Step forward; a no-op at the newest snapshot."""
        if self.can_redo:
            self._index += 1
        return self.current

    def reset(self, snapshot: TemplateData) -> None:
        """Start over from a single snapshot, e.g. after opening another template."""
        self._snapshots = [snapshot]
        self._index = 0
