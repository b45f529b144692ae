"""Unit tests for the shared pynput key and button resolution.

pynput selects an OS backend at import time; on machines without a
desktop session the whole module is skipped.
"""

from __future__ import annotations

import pytest

input_mod = pytest.importorskip("autoscript.platform.input")

from pynput.keyboard import Key  # noqa: E402
from pynput.mouse import Button  # noqa: E402


class TestResolveButton:
    """Mouse button names."""

    @pytest.mark.parametrize(
        "name, button",
        [("left", Button.left), ("RIGHT", Button.right), (" middle ", Button.middle)],
    )
    def test_known_buttons(self, name: str, button: Button) -> None:
        """Button names resolve case-insensitively."""
        assert input_mod.resolve_button(name) == button

    def test_unknown_button_raises(self) -> None:
        """Unknown buttons raise ValueError."""
        with pytest.raises(ValueError):
            input_mod.resolve_button("thumb")


class TestResolveKey:
    """Key names."""

    def test_special_key(self) -> None:
        """Named keys map to pynput Key members."""
        assert input_mod.resolve_key("Enter") == Key.enter

    def test_alias(self) -> None:
        """control and ctrl are the same key."""
        assert input_mod.resolve_key("control") == Key.ctrl

    def test_single_character_lowercased(self) -> None:
        """Single characters are returned lower-case."""
        assert input_mod.resolve_key("A") == "a"

    def test_unknown_raises(self) -> None:
        """Unknown multi-character names raise ValueError."""
        with pytest.raises(ValueError):
            input_mod.resolve_key("hyper")


class TestParseCombo:
    """Key combination strings."""

    def test_modifiers_and_key(self) -> None:
        """ctrl+shift+s resolves each part in order."""
        assert input_mod.parse_combo("ctrl+shift+s") == [
            Key.ctrl,
            Key.shift,
            "s",
        ]

    def test_single_key(self) -> None:
        """A lone key is a one-element combo."""
        assert input_mod.parse_combo("f5") == [Key.f5]

    def test_literal_plus(self) -> None:
        """A trailing '++' means the plus key itself."""
        assert input_mod.parse_combo("ctrl++") == [Key.ctrl, "+"]

    def test_empty_raises(self) -> None:
        """Empty combos raise ValueError."""
        with pytest.raises(ValueError):
            input_mod.parse_combo("  ")
