import copy
from pathlib import Path

import pytest

from album_core.models import Album, BackupSnapshot, create_album
from album_core.services.document_store import DocumentStore
from album_core.services.history import CommandHistory
from album_core.services.interfaces import SaveResult


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualTimer:
    def __init__(self, callback, single_shot: bool) -> None:
        self.callback = callback
        self.single_shot = single_shot
        self.interval_ms: int | None = None
        self.active = False
        self.start_count = 0

    def start(self, interval_ms: int) -> None:
        self.interval_ms = interval_ms
        self.active = True
        self.start_count += 1

    def stop(self) -> None:
        self.active = False

    def is_active(self) -> bool:
        return self.active

    def fire(self) -> None:
        """Simulate the timeout elapsing."""
        if not self.active:
            return
        if self.single_shot:
            self.active = False
        self.callback()


class ManualTimerFactory:
    def __init__(self) -> None:
        self.timers: list[ManualTimer] = []

    def __call__(self, callback, single_shot: bool) -> ManualTimer:
        timer = ManualTimer(callback, single_shot)
        self.timers.append(timer)
        return timer

    @property
    def debounce(self) -> ManualTimer:
        return next(t for t in self.timers if t.single_shot)

    @property
    def periodic(self) -> ManualTimer:
        return next(t for t in self.timers if not t.single_shot)


class DeferredExecutor:
    """Queues persist jobs until the test completes them."""

    def __init__(self) -> None:
        self.queue: list[tuple] = []

    def submit(self, job, on_done) -> None:
        self.queue.append((job, on_done))

    def complete_next(self) -> SaveResult:
        job, on_done = self.queue.pop(0)
        result = job()
        on_done(result)
        return result


class MemoryRepository:
    def __init__(self, fail_with: str | None = None) -> None:
        self.albums: dict[str, Album] = {}
        self.saved: list[Album] = []
        self.fail_with = fail_with

    def load(self, album_id: str) -> Album:
        from album_core.errors import NotFoundError

        if album_id not in self.albums:
            raise NotFoundError("album", album_id)
        return copy.deepcopy(self.albums[album_id])

    def save(self, album: Album) -> SaveResult:
        if self.fail_with:
            return SaveResult(success=False, reason=self.fail_with)
        self.saved.append(album)
        self.albums[album.id] = album
        return SaveResult(success=True)


class MemoryBackupStore:
    def __init__(self) -> None:
        self.snapshots: dict[str, BackupSnapshot] = {}
        self.writes = 0

    def write_backup(self, album_id: str, snapshot: BackupSnapshot) -> None:
        self.snapshots[album_id] = snapshot
        self.writes += 1

    def read_backup(self, album_id: str) -> BackupSnapshot | None:
        return self.snapshots.get(album_id)

    def clear_backup(self, album_id: str) -> None:
        self.snapshots.pop(album_id, None)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timers() -> ManualTimerFactory:
    return ManualTimerFactory()


@pytest.fixture
def executor() -> DeferredExecutor:
    return DeferredExecutor()


@pytest.fixture
def repository() -> MemoryRepository:
    return MemoryRepository()


@pytest.fixture
def backups() -> MemoryBackupStore:
    return MemoryBackupStore()


@pytest.fixture
def album(clock) -> Album:
    """Front cover, two freeform pages, back cover."""
    return create_album("album-1", "Summer", created_at=clock())


@pytest.fixture
def store(album, clock) -> DocumentStore:
    s = DocumentStore(clock=clock)
    s.load(album)
    return s


@pytest.fixture
def history(store) -> CommandHistory:
    return CommandHistory(store)


@pytest.fixture
def inner_page_id(store) -> str:
    """Id of the first non-cover page."""
    return store.album.pages[1].id


@pytest.fixture
def sample_image(tmp_path: Path) -> Path:
    """Create a small landscape test image."""
    from PIL import Image

    img = Image.new("RGB", (200, 100), color="white")
    img_path = tmp_path / "sample.png"
    img.save(img_path)
    return img_path


@pytest.fixture
def two_slot_layout() -> list[dict]:
    return [
        {"left": 0, "top": 0, "width": 50, "height": 100},
        {"x": 50, "y": 0, "width": 50, "height": 100, "id": "right", "zIndex": 2},
    ]
