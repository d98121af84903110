from __future__ import annotations

import argparse
from pathlib import Path
import sys

from PySide6.QtCore import QCoreApplication, QTimer
from loguru import logger

from album_app.session import EditorSession, EditorSettings
from album_app.viewmodels.editor_vm import EditorVM
from album_app.viewmodels.page_vm import PageVM
from album_app.views.qt_scheduling import QtSaveExecutor, qt_timer_factory
from album_core.errors import AlbumError, NotFoundError
from album_core.services.autosave import SaveStatus
from album_core.services.spread_service import iter_spreads
from album_infra.backup_store import JsonBackupStore
from album_infra.json_repository import JsonAlbumRepository
from album_infra.logging import (
    find_latest_log_file,
    get_log_directory,
    init_logging,
    open_latest_log,
)
from album_infra.settings import JsonSettings

BASE_DIR = Path(__file__).parent

# Upper bound for waiting on a background save before giving up.
SAVE_WAIT_MS = 30_000


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="album-studio", description="Album Studio editing engine")
    parser.add_argument("--settings", type=Path, default=BASE_DIR / "settings.json")
    parser.add_argument("-v", "--verbose", action="store_true", help="also log to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    p_new = sub.add_parser("new", help="create an empty album")
    p_new.add_argument("title")
    p_new.add_argument("--id", dest="album_id")

    sub.add_parser("list", help="list stored albums")

    p_info = sub.add_parser("info", help="show the pages and spreads of an album")
    p_info.add_argument("album_id")

    p_recover = sub.add_parser("recover", help="restore unsaved local changes of an album")
    p_recover.add_argument("album_id")

    p_discard = sub.add_parser("discard-backup", help="drop unsaved local changes of an album")
    p_discard.add_argument("album_id")

    p_import = sub.add_parser("import", help="add media files to an album's library")
    p_import.add_argument("album_id")
    p_import.add_argument("files", nargs="+", type=Path)

    p_logs = sub.add_parser("logs", help="show the latest log file")
    p_logs.add_argument("--open", action="store_true", help="open it in the default app")
    return parser


def _make_session(
    settings: EditorSettings, executor: QtSaveExecutor | None = None
) -> EditorSession:
    return EditorSession(
        JsonAlbumRepository(settings.albums_dir),
        JsonBackupStore(settings.backups_dir),
        settings,
        qt_timer_factory,
        executor,
    )


def _run_until_saved(app: QCoreApplication, session: EditorSession) -> int:
    """Spin the event loop until the pending background save has finished."""
    outcome: dict[str, int] = {"code": 0}

    def _on_status(status: SaveStatus) -> None:
        if status == SaveStatus.SAVED:
            app.quit()

    def _on_failure(reason: str) -> None:
        print(f"Save failed: {reason}", file=sys.stderr)
        outcome["code"] = 1
        app.quit()

    session.autosave.add_status_listener(_on_status)
    session.autosave.add_failure_listener(_on_failure)
    session.autosave.save_now()
    if session.save_status != SaveStatus.SAVED:
        QTimer.singleShot(SAVE_WAIT_MS, app.quit)
        app.exec()
    if session.save_status != SaveStatus.SAVED and outcome["code"] == 0:
        print("Timed out waiting for save", file=sys.stderr)
        outcome["code"] = 1
    return outcome["code"]


def _cmd_info(session: EditorSession, album_id: str) -> int:
    session.open(album_id)
    album = session.album
    assert album is not None
    print(f"{album.title} ({album.id})")
    print(f"  pages: {len(album.pages)}  spread view: {album.config.use_spread_view}")
    for spread in iter_spreads(album.pages, album.config.use_spread_view):
        labels = [PageVM(page=p).label for p in spread]
        counts = [str(len(p.assets)) for p in spread]
        print(f"  [{' | '.join(labels)}]  assets: {'/'.join(counts)}")
    print(f"  library: {len(album.unplaced_media)} item(s)")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    json_settings = JsonSettings(args.settings)
    init_logging(
        json_settings.get("logging.dir"),
        level=str(json_settings.get("logging.level", "INFO")),
        console=args.verbose,
    )
    settings = EditorSettings.from_settings(json_settings, base_dir=args.settings.parent)

    if args.command == "logs":
        latest = find_latest_log_file()
        print(latest or f"No log files in {get_log_directory()}")
        if args.open and latest:
            return 0 if open_latest_log() else 1
        return 0

    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    executor = QtSaveExecutor()
    session = _make_session(settings, executor)
    try:
        if args.command == "new":
            album = session.create(args.title, args.album_id)
            print(album.id)
            return 0
        if args.command == "list":
            repo = JsonAlbumRepository(settings.albums_dir)
            for summary in repo.iter_summaries():
                print(f"{summary.id}\t{summary.title}\t{summary.page_count} pages")
            return 0
        if args.command == "info":
            return _cmd_info(session, args.album_id)
        if args.command == "discard-backup":
            session.open(args.album_id)
            session.recovery.dismiss()
            return 0
        if args.command == "recover":
            snapshot = session.open(args.album_id)
            if snapshot is None:
                print("Nothing to recover")
                return 0
            session.recovery.restore()
            return _run_until_saved(app, session)
        if args.command == "import":
            session.open(args.album_id)
            editor = EditorVM(session)
            ids = editor.import_media(args.files)
            print(f"Imported {len(ids)} file(s)")
            return _run_until_saved(app, session)
    except NotFoundError as ex:
        print(str(ex), file=sys.stderr)
        return 2
    except AlbumError as ex:
        logger.exception("Command {} failed", args.command)
        print(f"Error: {ex}", file=sys.stderr)
        return 1
    finally:
        session.close()
        executor.wait_for_done(SAVE_WAIT_MS)
    return 1


if __name__ == "__main__":
    sys.exit(main())
