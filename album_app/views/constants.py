"""
View constants shared by the Qt adapters.

Key names here are the vocabulary of `EditorVM.handle_key`; the adapter only
translates Qt key codes into them.
"""

from __future__ import annotations

from PySide6.QtCore import Qt

KEY_NAMES: dict[int, str] = {
    Qt.Key_Left: "Left",
    Qt.Key_Right: "Right",
    Qt.Key_Up: "Up",
    Qt.Key_Down: "Down",
    Qt.Key_Delete: "Delete",
    Qt.Key_Backspace: "Backspace",
    Qt.Key_PageUp: "PageUp",
    Qt.Key_PageDown: "PageDown",
    Qt.Key_Escape: "Escape",
    Qt.Key_Z: "z",
    Qt.Key_Y: "y",
    Qt.Key_D: "d",
    Qt.Key_S: "s",
    Qt.Key_0: "0",
}

# Ctrl on Windows/Linux, Cmd on macOS (Qt maps Cmd to ControlModifier)
COMMAND_MODIFIER = Qt.ControlModifier
SHIFT_MODIFIER = Qt.ShiftModifier
