"""
Editor Module for Invoice Template Studio.

This module provides:
    - Snapshot undo/redo history
    - The editor session (selection, pointer gestures, keyboard, zoom)
    - The property panel model
    - The template library with offline fallback

Author: ML Engineering Team
"""

from .history import History
from .session import EditorSession, PointerMode, RESIZE_HANDLE
from .panel import PropertyPanel, PanelMode, PanelState
from .library import TemplateLibrary

__all__ = [
    'History',
    'EditorSession',
    'PointerMode',
    'RESIZE_HANDLE',
    'PropertyPanel',
    'PanelMode',
    'PanelState',
    'TemplateLibrary'
]
