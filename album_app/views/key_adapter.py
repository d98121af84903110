"""Translation of Qt key events into editor commands."""

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeyEvent

from album_app.views.constants import COMMAND_MODIFIER, KEY_NAMES, SHIFT_MODIFIER


def translate_key(key: int, modifiers: Qt.KeyboardModifier) -> tuple[str, bool, bool] | None:
    """Map a Qt key code and modifiers to `(name, shift, ctrl)`.

    Returns None for keys the editor does not handle.
    """
    name = KEY_NAMES.get(int(key))
    if name is None:
        return None
    shift = bool(modifiers & SHIFT_MODIFIER)
    ctrl = bool(modifiers & COMMAND_MODIFIER)
    return name, shift, ctrl


def dispatch_key_event(event: QKeyEvent, editor) -> bool:
    """Forward `event` to `editor.handle_key`; accepts the event when handled."""
    translated = translate_key(event.key(), event.modifiers())
    if translated is None:
        return False
    name, shift, ctrl = translated
    handled = editor.handle_key(name, shift=shift, ctrl=ctrl)
    if handled:
        event.accept()
    return handled
