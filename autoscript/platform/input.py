"""Shared ``pynput`` input injection for the concrete platforms.

Key and button names are resolved here so that every platform accepts
the same combo syntax (``'ctrl+shift+s'``, ``'alt+f4'``, ``'enter'``).
"""

from __future__ import annotations

import time

from pynput.keyboard import Controller as KbdController
from pynput.keyboard import Key
from pynput.mouse import Button
from pynput.mouse import Controller as MouseController

_BUTTON_MAP: dict[str, Button] = {
    "left": Button.left,
    "right": Button.right,
    "middle": Button.middle,
}

_KEY_MAP: dict[str, Key] = {
    "alt": Key.alt,
    "alt_l": Key.alt_l,
    "alt_r": Key.alt_r,
    "backspace": Key.backspace,
    "caps_lock": Key.caps_lock,
    "cmd": Key.cmd,
    "ctrl": Key.ctrl,
    "control": Key.ctrl,
    "ctrl_l": Key.ctrl_l,
    "ctrl_r": Key.ctrl_r,
    "delete": Key.delete,
    "del": Key.delete,
    "down": Key.down,
    "end": Key.end,
    "enter": Key.enter,
    "return": Key.enter,
    "esc": Key.esc,
    "escape": Key.esc,
    "f1": Key.f1,
    "f2": Key.f2,
    "f3": Key.f3,
    "f4": Key.f4,
    "f5": Key.f5,
    "f6": Key.f6,
    "f7": Key.f7,
    "f8": Key.f8,
    "f9": Key.f9,
    "f10": Key.f10,
    "f11": Key.f11,
    "f12": Key.f12,
    "home": Key.home,
    "left": Key.left,
    "page_down": Key.page_down,
    "pagedown": Key.page_down,
    "page_up": Key.page_up,
    "pageup": Key.page_up,
    "right": Key.right,
    "shift": Key.shift,
    "shift_l": Key.shift_l,
    "shift_r": Key.shift_r,
    "space": Key.space,
    "tab": Key.tab,
    "up": Key.up,
    "win": Key.cmd,
    "windows": Key.cmd,
    "super": Key.cmd,
}


def resolve_button(name: str) -> Button:
    """Resolve a mouse button name.

    Raises:
        ValueError: If *name* is not ``left``, ``right`` or ``middle``.
    """
    btn = _BUTTON_MAP.get(name.strip().lower())
    if btn is None:
        raise ValueError(
            f"Unknown mouse button: {name!r}. "
            f"Expected one of {list(_BUTTON_MAP)}"
        )
    return btn


def resolve_key(name: str) -> Key | str:
    """Resolve a key name to a ``pynput.keyboard.Key`` or a character.

    Args:
        name: Key name (e.g. ``'ctrl'``, ``'A'``), case-insensitive.

    Returns:
        A ``Key`` member for special keys, or the lowercase character
        itself for single-character names.

    Raises:
        ValueError: If *name* is neither a known key nor one character.
    """
    normalised = name.strip().lower()
    if normalised in _KEY_MAP:
        return _KEY_MAP[normalised]
    if len(normalised) == 1:
        return normalised
    raise ValueError(f"Unknown key name: {name!r}")


def parse_combo(combo: str) -> list[Key | str]:
    """Split a ``+``-separated combo and resolve every part.

    A literal plus is written as a trailing ``'+'`` part, e.g.
    ``'ctrl++'``.

    Raises:
        ValueError: If the combo is empty or contains unknown keys.
    """
    text = combo.strip()
    if not text:
        raise ValueError("Empty key combination")
    if text == "+":
        return ["+"]
    parts = text.split("+")
    if text.endswith("++"):
        parts = parts[:-2] + ["+"]
    return [resolve_key(p) for p in parts if p.strip() or p == "+"]


class PynputInputMixin:
    """Mouse and keyboard methods backed by ``pynput`` controllers.

    Subclasses call ``_init_input`` from their constructor.
    """

    _mouse: MouseController
    _kbd: KbdController

    def _init_input(self) -> None:
        self._mouse = MouseController()
        self._kbd = KbdController()

    # -- Cursor ----------------------------------------------------

    def get_cursor_pos(self) -> tuple[int, int]:
        x, y = self._mouse.position
        return (int(x), int(y))

    def move_cursor(self, x: int, y: int) -> None:
        self._mouse.position = (x, y)

    # -- Mouse -----------------------------------------------------

    def click(self, x: int, y: int, button: str = "left") -> None:
        btn = resolve_button(button)
        self._mouse.position = (x, y)
        self._mouse.click(btn, 1)

    def double_click(
        self, x: int, y: int, button: str = "left"
    ) -> None:
        btn = resolve_button(button)
        self._mouse.position = (x, y)
        self._mouse.click(btn, 2)

    def mouse_down(self, button: str = "left") -> None:
        self._mouse.press(resolve_button(button))

    def mouse_up(self, button: str = "left") -> None:
        self._mouse.release(resolve_button(button))

    # -- Keyboard --------------------------------------------------

    def type_text(self, text: str) -> None:
        self._kbd.type(text)

    def key_press(self, key: str) -> None:
        """Press a key or key combination.

        Holds all modifier keys, taps the final key, then releases
        modifiers in reverse order.

        Raises:
            ValueError: If any part of the combo is unknown.
        """
        resolved = parse_combo(key)

        if len(resolved) == 1:
            self._kbd.press(resolved[0])
            self._kbd.release(resolved[0])
            return

        modifiers = resolved[:-1]
        final = resolved[-1]
        for mod in modifiers:
            self._kbd.press(mod)
            time.sleep(0.01)
        self._kbd.press(final)
        self._kbd.release(final)
        for mod in reversed(modifiers):
            self._kbd.release(mod)
