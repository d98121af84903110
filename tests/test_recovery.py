"""
Unit tests for album_core.services.recovery.
"""

import copy

import pytest

from album_core.errors import PersistenceFailure
from album_core.models import BackupSnapshot
from album_core.services.autosave import AutosaveCoordinator, InlineExecutor, SaveStatus
from album_core.services.recovery import BackupMirror, RecoveryService


class FailingBackupStore:
    def write_backup(self, album_id, snapshot):
        raise PersistenceFailure("read-only disk")

    def read_backup(self, album_id):
        raise PersistenceFailure("corrupt")

    def clear_backup(self, album_id):
        return None


class TestBackupMirror:
    """Tests for BackupMirror."""

    def test_mirror_when_mutation_settles_then_backup_holds_current_album(
        self, store, backups, clock, inner_page_id
    ):
        BackupMirror(store, backups, clock=clock)

        store.add_asset(inner_page_id, {"type": "image", "url": "a.jpg"})

        snapshot = backups.read_backup(store.album.id)
        assert snapshot.album == store.album
        assert snapshot.timestamp == clock()

    def test_mirror_when_album_loaded_then_nothing_written(self, store, backups, album):
        BackupMirror(store, backups)

        store.load(album)

        assert backups.writes == 0

    def test_mirror_when_batch_then_one_write(self, store, backups, inner_page_id):
        BackupMirror(store, backups)

        with store.batch("Two"):
            store.add_asset(inner_page_id, {"type": "image", "url": "a.jpg"})
            store.add_asset(inner_page_id, {"type": "image", "url": "b.jpg"})

        assert backups.writes == 1

    def test_mirror_when_backup_write_fails_then_edit_kept(self, store, inner_page_id):
        mirror = BackupMirror(store, FailingBackupStore())

        store.add_asset(inner_page_id, {"type": "image", "url": "a.jpg"})

        assert mirror.write_count == 0
        assert len(store.album.find_page(inner_page_id).assets) == 1

    def test_mirror_when_disposed_then_stops_writing(self, store, backups, inner_page_id):
        mirror = BackupMirror(store, backups)
        mirror.dispose()

        store.add_asset(inner_page_id, {"type": "image", "url": "a.jpg"})

        assert backups.writes == 0


class TestRecoveryService:
    """Tests for RecoveryService check/restore/dismiss."""

    @pytest.fixture
    def edited_snapshot(self, album, clock):
        edited = copy.deepcopy(album)
        edited.title = "Unsaved title"
        return BackupSnapshot(album=edited, timestamp=clock() + 10)

    def test_check_when_no_backup_then_none(self, store, backups):
        assert RecoveryService(store, backups).check() is None

    def test_check_when_backup_identical_then_cleared_silently(self, store, backups, clock):
        backups.write_backup(
            store.album.id, BackupSnapshot(album=copy.deepcopy(store.album), timestamp=clock())
        )

        assert RecoveryService(store, backups).check() is None
        assert backups.read_backup(store.album.id) is None

    def test_check_when_backup_differs_then_offered(self, store, backups, edited_snapshot):
        backups.write_backup(store.album.id, edited_snapshot)
        service = RecoveryService(store, backups)

        offered = service.check()

        assert offered is edited_snapshot
        assert service.pending is edited_snapshot

    def test_check_when_backup_unreadable_then_none(self, store):
        assert RecoveryService(store, FailingBackupStore()).check() is None

    def test_restore_when_offered_then_album_replaced_and_saved_immediately(
        self, store, backups, repository, timers, edited_snapshot
    ):
        autosave = AutosaveCoordinator(store, repository.save, InlineExecutor(), timers)
        backups.write_backup(store.album.id, edited_snapshot)
        service = RecoveryService(store, backups, autosave)
        service.check()

        assert service.restore() is True

        assert store.album.title == "Unsaved title"
        assert repository.saved[-1].title == "Unsaved title"
        assert autosave.status == SaveStatus.SAVED

    def test_restore_when_nothing_offered_then_false(self, store, backups):
        assert RecoveryService(store, backups).restore() is False

    def test_dismiss_when_called_then_backup_cleared(self, store, backups, edited_snapshot):
        backups.write_backup(store.album.id, edited_snapshot)
        service = RecoveryService(store, backups)
        service.check()

        service.dismiss()

        assert service.pending is None
        assert backups.read_backup(store.album.id) is None
