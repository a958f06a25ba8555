"""
Client-side viewer: prefetch scheduling, viewer state and browsing session.
"""

from .browsing import BrowsingSession
from .prefetch import ImageCache, PrefetchScheduler
from .session import ViewerState, ViewerStateMachine

__all__ = [
    "BrowsingSession",
    "ImageCache",
    "PrefetchScheduler",
    "ViewerState",
    "ViewerStateMachine",
]
