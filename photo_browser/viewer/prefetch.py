"""
Prefetch scheduler - keeps a window of image bytes warm ahead of the viewer.

Warming is fire-and-forget: fetches go to an executor and nobody waits for
them. A path is marked warmed when its fetch is issued, so asking for it again
is a no-op. Nothing is evicted until the next session starts.
"""

import logging
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Sequence, Set

from ..config import DEFAULT_FETCH_WORKERS, PRELOAD_BATCH_SIZE, PRELOAD_LOOKAHEAD

logger = logging.getLogger(__name__)


class ImageCache:
    """Thread-safe byte cache filled by warm fetches."""

    def __init__(self):
        self._data: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def get(self, path: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(path)

    def put(self, path: str, data: bytes):
        with self._lock:
            self._data[path] = data

    def __contains__(self, path: str) -> bool:
        with self._lock:
            return path in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class PrefetchScheduler:
    """Sliding prefetch window over an ordered set of image paths."""

    def __init__(
        self,
        fetch: Callable[[str], bytes],
        batch_size: int = PRELOAD_BATCH_SIZE,
        lookahead: int = PRELOAD_LOOKAHEAD,
        executor: Optional[Executor] = None,
    ):
        """
        Args:
            fetch: Returns the bytes of one image path; runs on the executor
            batch_size: Number of images warmed per batch
            lookahead: Distance from the high-water mark that triggers the next batch
            executor: Where fetches run (default: a small private thread pool)
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._fetch = fetch
        self.batch_size = batch_size
        self.lookahead = lookahead
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=DEFAULT_FETCH_WORKERS,
            thread_name_prefix='prefetch',
        )

        self.image_set: List[str] = []
        self.warmed: Set[str] = set()
        self.high_water_mark = -1
        self.cache = ImageCache()

    def reset(self):
        """Forget everything; in-flight fetches finish into the discarded cache."""
        self.image_set = []
        self.warmed = set()
        self.high_water_mark = -1
        self.cache = ImageCache()

    def start_session(self, image_set: Sequence[str], initial_index: int = 0):
        """Reset, then warm one batch starting at ``initial_index``."""
        # State is cleared before any new fetch is issued
        self.reset()
        self.image_set = list(image_set)
        if not self.image_set:
            return
        if not 0 <= initial_index < len(self.image_set):
            raise IndexError(f"Index {initial_index} outside image set of {len(self.image_set)}")
        self.warm(initial_index)

    def on_navigate(self, new_index: int):
        """Warm the next batch when the viewer gets close to the high-water mark."""
        last_index = len(self.image_set) - 1
        if self.high_water_mark >= last_index:
            return
        if new_index > self.high_water_mark - self.lookahead:
            self.warm(self.high_water_mark + 1)

    def warm(self, start: int, count: Optional[int] = None):
        """Issue fetches for ``count`` images from ``start``, in index order."""
        count = self.batch_size if count is None else count
        end = min(start + count, len(self.image_set))
        if end <= start:
            return

        cache = self.cache
        issued = 0
        for index in range(start, end):
            path = self.image_set[index]
            if path in self.warmed:
                continue
            self.warmed.add(path)
            self._executor.submit(self._fetch_into, cache, path)
            issued += 1

        self.high_water_mark = end - 1
        logger.debug(f"Prefetch {start}..{end - 1}: {issued} fetches issued")

    def _fetch_into(self, cache: ImageCache, path: str):
        try:
            data = self._fetch(path)
        except Exception as e:
            # Warming is best effort; the viewer fetches on demand instead
            logger.warning(f"Prefetch failed for {path}: {e}")
            return
        cache.put(path, data)

    def shutdown(self):
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
