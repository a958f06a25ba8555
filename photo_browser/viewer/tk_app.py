"""
Tk full-screen viewer for a running photo browser server.
"""

import logging
import tkinter as tk
from concurrent.futures import ThreadPoolExecutor
from io import BytesIO
from typing import Callable, Dict, List, Optional

from PIL import Image, ImageOps, ImageTk

from ..client import BrowserClient
from ..config import ViewerConfig
from ..errors import BrowserError
from .browsing import BrowsingSession
from .prefetch import PrefetchScheduler
from .session import ViewerState, ViewerStateMachine

logger = logging.getLogger(__name__)


class TkFullscreen:
    """Full-screen capability backed by the window manager attribute."""

    def __init__(self, root: tk.Tk):
        self.root = root

    def request(self):
        self.root.attributes('-fullscreen', True)

    def release(self):
        self.root.attributes('-fullscreen', False)

    def is_active(self) -> bool:
        return bool(self.root.attributes('-fullscreen'))


class TkKeyBindings:
    """Binds viewer keys on the root window and removes them again on detach."""

    def __init__(self, root: tk.Tk):
        self.root = root
        self._sequences: List[str] = []

    def attach(self, handlers: Dict[str, Callable[[], None]]):
        self.detach()
        for key, handler in handlers.items():
            sequence = f'<{key}>'
            self.root.bind(sequence, lambda event, handler=handler: handler())
            self._sequences.append(sequence)

    def detach(self):
        for sequence in self._sequences:
            self.root.unbind(sequence)
        self._sequences = []


class ViewerApp:
    """Opens one directory of a server in a full-screen Tk window."""

    def __init__(self, config: ViewerConfig):
        self.config = config
        self.client = BrowserClient(config.base_url, timeout=config.timeout)
        self.scheduler = PrefetchScheduler(
            self._fetch_image,
            batch_size=config.batch_size,
            lookahead=config.lookahead,
            executor=ThreadPoolExecutor(max_workers=config.fetch_workers, thread_name_prefix='prefetch'),
        )
        self.browsing = BrowsingSession(self.client, scheduler=self.scheduler)

        self.root = tk.Tk()
        self.root.title("Photo Browser")
        self.root.configure(background='black')
        self.canvas = tk.Canvas(self.root, background='black', highlightthickness=0)
        self.canvas.pack(fill=tk.BOTH, expand=True)
        self.canvas.bind('<Button-1>', self._on_click)
        self._photo: Optional[ImageTk.PhotoImage] = None

        self.viewer = ViewerStateMachine(self.scheduler, TkFullscreen(self.root), TkKeyBindings(self.root))
        self.viewer.subscribe(self._on_viewer_change)

        # F11 and closing the window are the platform's own ways out of full screen
        self.root.bind('<F11>', lambda event: self._leave_fullscreen())
        self.root.protocol('WM_DELETE_WINDOW', self._leave_fullscreen)

    def _fetch_image(self, path: str) -> bytes:
        content, _ = self.client.fetch_file(path)
        return content

    def run(self, path: Optional[str] = None, start: Optional[str] = None):
        """
        List ``path`` on the server and open the viewer on ``start`` (a file name).

        Raises:
            BrowserError: The listing failed
            ValueError: The directory has no images, or ``start`` is not one of them
        """
        try:
            if not self.browsing.navigate(path):
                raise self.browsing.error
            images = self.browsing.image_set()
            if not images:
                raise ValueError(f"No images in {self.browsing.listing.absolute_path}")

            selected = 0
            if start is not None:
                names = [entry.name for entry in images]
                if start not in names:
                    raise ValueError(f"{start} is not an image in {self.browsing.listing.absolute_path}")
                selected = names.index(start)

            self.viewer.open(images, selected)
            self.root.mainloop()
        finally:
            self.scheduler.shutdown()
            self.client.close()

    def _leave_fullscreen(self):
        if self.root.attributes('-fullscreen'):
            self.root.attributes('-fullscreen', False)
        self.viewer.on_fullscreen_exited()

    def _on_click(self, event):
        # Clicking outside the picture dismisses the viewer
        if not self.canvas.find_withtag('current'):
            self.viewer.dismiss()

    def _on_viewer_change(self, viewer: ViewerStateMachine):
        if viewer.state == ViewerState.CLOSED:
            self.root.destroy()
            return
        self._show(viewer.session.current_index)

    def _show(self, index: int):
        entry = self.viewer.session.image_set[index]
        self.root.title(f"{entry.name} ({index + 1} / {len(self.viewer.session.image_set)})")
        self.canvas.delete('all')

        width = self.root.winfo_screenwidth()
        height = self.root.winfo_screenheight()
        try:
            data = self.scheduler.cache.get(entry.relative_path)
            if data is None:
                data = self._fetch_image(entry.relative_path)
            with Image.open(BytesIO(data)) as img:
                img = ImageOps.exif_transpose(img)
                img.thumbnail((width, height), Image.Resampling.LANCZOS)
                self._photo = ImageTk.PhotoImage(img)
        except (BrowserError, OSError, ValueError) as e:
            logger.warning(f"Cannot display {entry.relative_path}: {e}")
            self._photo = None
            self.canvas.create_text(
                width // 2, height // 2, text=f"Cannot display {entry.name}", fill='white',
            )
            return

        self.canvas.create_image(width // 2, height // 2, image=self._photo, anchor=tk.CENTER)
