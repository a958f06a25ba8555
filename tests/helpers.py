"""Shared fakes for viewer and scheduler tests."""

from __future__ import annotations

from concurrent.futures import Executor, Future
from typing import Callable, Dict, List, Tuple

from photo_browser.models import DirectoryEntry, EntryKind


class SyncExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, /, *args, **kwargs):
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:
            future.set_exception(exc)
        return future


class DeferredExecutor(Executor):
    """Queues submitted work until ``run_all`` is called."""

    def __init__(self) -> None:
        self.pending: List[Tuple[Callable, tuple, dict]] = []

    def submit(self, fn, /, *args, **kwargs):
        self.pending.append((fn, args, kwargs))
        return Future()

    def run_all(self) -> None:
        pending, self.pending = self.pending, []
        for fn, args, kwargs in pending:
            fn(*args, **kwargs)


class RecordingFetch:
    """Fetch function that records every path it is asked for."""

    def __init__(self, fail: tuple = ()) -> None:
        self.calls: List[str] = []
        self.fail = set(fail)

    def __call__(self, path: str) -> bytes:
        self.calls.append(path)
        if path in self.fail:
            raise OSError(f"cannot fetch {path}")
        return f"bytes:{path}".encode()


class FakeDisplay:
    def __init__(self) -> None:
        self.active = False
        self.refuse = False
        self.requests = 0
        self.releases = 0
        self.on_release: Callable[[], None] = lambda: None

    def request(self) -> None:
        self.requests += 1
        if self.refuse:
            raise RuntimeError("full screen refused")
        self.active = True

    def release(self) -> None:
        self.releases += 1
        self.active = False
        self.on_release()

    def is_active(self) -> bool:
        return self.active


class FakeKeys:
    def __init__(self) -> None:
        self.handlers: Dict[str, Callable[[], None]] = {}
        self.attach_count = 0
        self.detach_count = 0

    def attach(self, handlers: Dict[str, Callable[[], None]]) -> None:
        self.attach_count += 1
        self.handlers = dict(handlers)

    def detach(self) -> None:
        self.detach_count += 1
        self.handlers = {}

    def press(self, key: str) -> None:
        handler = self.handlers.get(key)
        if handler is not None:
            handler()


def image_entries(count: int, folder: str = "album") -> List[DirectoryEntry]:
    return [
        DirectoryEntry(
            name=f"img{i:03d}.jpg",
            kind=EntryKind.FILE,
            relative_path=f"{folder}/img{i:03d}.jpg",
            extension=".jpg",
        )
        for i in range(count)
    ]
