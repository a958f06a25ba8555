"""
Viewer state machine.

Two states, CLOSED and OPEN. Opening requests full screen, starts a prefetch
session and attaches the navigation keys. Every way out (dismiss gesture,
escape, the platform leaving full screen on its own) goes through the same
close transition, which detaches the keys and releases full screen if it is
still active.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Union

from ..models import DirectoryEntry
from .prefetch import PrefetchScheduler

logger = logging.getLogger(__name__)

KEY_PREVIOUS = 'Left'
KEY_NEXT = 'Right'
KEY_DISMISS = 'Escape'


class ViewerState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"


class FullscreenDisplay(Protocol):
    """Environment capability for full-screen presentation."""

    def request(self) -> None: ...

    def release(self) -> None: ...

    def is_active(self) -> bool: ...


class KeyBindings(Protocol):
    """Environment capability for keyboard listeners."""

    def attach(self, handlers: Dict[str, Callable[[], None]]) -> None: ...

    def detach(self) -> None: ...


@dataclass
class ViewerSession:
    """State of an open viewer."""
    image_set: List[DirectoryEntry]
    current_index: int
    is_fullscreen: bool = False

    @property
    def current(self) -> DirectoryEntry:
        return self.image_set[self.current_index]


class ViewerStateMachine:
    """Owns the viewer lifecycle and drives the prefetch scheduler."""

    def __init__(self, scheduler: PrefetchScheduler, display: FullscreenDisplay, keys: KeyBindings):
        self.scheduler = scheduler
        self.display = display
        self.keys = keys
        self.session: Optional[ViewerSession] = None
        self._listeners: List[Callable[["ViewerStateMachine"], None]] = []

    @property
    def state(self) -> ViewerState:
        return ViewerState.CLOSED if self.session is None else ViewerState.OPEN

    @property
    def current(self) -> Optional[DirectoryEntry]:
        return self.session.current if self.session else None

    def subscribe(self, callback: Callable[["ViewerStateMachine"], None]):
        """Call ``callback(machine)`` after every state or index change."""
        self._listeners.append(callback)

    def _notify(self):
        for callback in list(self._listeners):
            callback(self)

    @staticmethod
    def _index_of(entries: List[DirectoryEntry], selected: Union[int, str, DirectoryEntry]) -> int:
        if isinstance(selected, int):
            if not 0 <= selected < len(entries):
                raise ValueError(f"Index {selected} outside image set of {len(entries)}")
            return selected
        path = selected.relative_path if isinstance(selected, DirectoryEntry) else selected
        for index, entry in enumerate(entries):
            if entry.relative_path == path:
                return index
        raise ValueError(f"{path} is not in the image set")

    def open(self, image_set: Sequence[DirectoryEntry], selected: Union[int, str, DirectoryEntry] = 0):
        """
        CLOSED -> OPEN on the selected image.

        Raises:
            RuntimeError: The viewer is already open
            ValueError: Empty image set or selection not in it
        """
        if self.session is not None:
            raise RuntimeError("Viewer is already open")
        entries = list(image_set)
        if not entries:
            raise ValueError("Cannot open the viewer on an empty image set")
        index = self._index_of(entries, selected)

        self.session = ViewerSession(image_set=entries, current_index=index)
        self.scheduler.start_session([entry.relative_path for entry in entries], index)
        self.keys.attach({
            KEY_PREVIOUS: self.previous,
            KEY_NEXT: self.next,
            KEY_DISMISS: self.dismiss,
        })
        try:
            self.display.request()
        except Exception:
            # Roll back to CLOSED; listeners never saw the viewer open
            self.session = None
            self.keys.detach()
            self.scheduler.reset()
            raise
        self.session.is_fullscreen = True
        logger.debug(f"Viewer opened at {index} of {len(entries)}")
        self._notify()

    def next(self):
        self._step(1)

    def previous(self):
        self._step(-1)

    def _step(self, step: int):
        session = self.session
        if session is None:
            return
        session.current_index = (session.current_index + step) % len(session.image_set)
        self.scheduler.on_navigate(session.current_index)
        self._notify()

    def dismiss(self):
        """Explicit close: gesture or escape key."""
        self._close("dismissed")

    def on_fullscreen_exited(self):
        """The environment left full screen by itself."""
        if self.session is not None:
            self.session.is_fullscreen = False
        self._close("fullscreen exited")

    def _close(self, reason: str):
        session = self.session
        if session is None:
            return
        # Cleared first so a release that echoes back an exit event is a no-op
        self.session = None
        self.keys.detach()
        if self.display.is_active():
            self.display.release()
        session.is_fullscreen = False
        logger.debug(f"Viewer closed ({reason})")
        self._notify()
