"""Tests for AutoScript configuration and settings.

Covers default values, immutability, dict round-trip, derived paths,
and loading from JSON files.
"""

from __future__ import annotations

import dataclasses
import json
from pathlib import Path

import pytest

from autoscript.config.settings import (
    Settings,
    get_default_settings,
    load_settings,
)


class TestDefaults:
    """Default values for the execution engine and its collaborators."""

    def test_returns_settings_instance(self) -> None:
        """get_default_settings must return a Settings object."""
        assert isinstance(get_default_settings(), Settings)

    def test_log_buffer_holds_1000_entries(self) -> None:
        """Default max_log_entries is 1000."""
        assert get_default_settings().max_log_entries == 1000

    def test_transition_cap_is_1000(self) -> None:
        """Default max_step_transitions is 1000."""
        assert get_default_settings().max_step_transitions == 1000

    def test_pause_poll_is_100ms(self) -> None:
        """Default pause_poll_ms is 100."""
        assert get_default_settings().pause_poll_ms == 100

    def test_wait_and_timeout_defaults(self) -> None:
        """wait defaults to 1000ms and timeout conditions to 5000ms."""
        s = get_default_settings()
        assert s.default_wait_ms == 1000
        assert s.default_timeout_ms == 5000

    def test_match_threshold_default(self) -> None:
        """Default template threshold is 0.8."""
        assert get_default_settings().default_match_threshold == 0.8

    def test_storage_layout_defaults(self) -> None:
        """Scripts live in Data/Scripts and templates in Data/Templates."""
        s = get_default_settings()
        assert s.scripts_path == Path("Data") / "Scripts"
        assert s.templates_path == Path("Data") / "Templates"

    def test_platform_auto_detected_by_default(self) -> None:
        """An empty platform_name means auto-detect."""
        assert get_default_settings().platform_name == ""


class TestImmutability:
    """Settings is a frozen dataclass."""

    def test_assignment_raises(self) -> None:
        """Assigning to a field raises FrozenInstanceError."""
        s = Settings()
        with pytest.raises(dataclasses.FrozenInstanceError):
            s.max_log_entries = 5  # type: ignore[misc]

    def test_replace_creates_modified_copy(self) -> None:
        """dataclasses.replace leaves the original untouched."""
        s = Settings()
        t = dataclasses.replace(s, data_dir="elsewhere")
        assert t.data_dir == "elsewhere"
        assert s.data_dir == "Data"


class TestSerialisation:
    """to_dict / from_dict behaviour."""

    def test_round_trip_preserves_values(self) -> None:
        """from_dict(to_dict()) reproduces an equal instance."""
        s = Settings(max_step_transitions=50, pause_poll_ms=20)
        assert Settings.from_dict(s.to_dict()) == s

    def test_unknown_keys_are_ignored(self) -> None:
        """Forward-compatible config files do not break loading."""
        s = Settings.from_dict({"pause_poll_ms": 5, "future_option": True})
        assert s.pause_poll_ms == 5

    def test_missing_keys_use_defaults(self) -> None:
        """An empty dict yields the defaults."""
        assert Settings.from_dict({}) == Settings()


class TestLoadSettings:
    """load_settings reads JSON files overlaid on the defaults."""

    def test_missing_file_returns_defaults(self, tmp_path: Path) -> None:
        """A non-existent path yields the default settings."""
        assert load_settings(tmp_path / "nope.json") == Settings()

    def test_values_override_defaults(self, tmp_path: Path) -> None:
        """Keys present in the file replace the defaults."""
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"data_dir": "scripts-here"}))
        s = load_settings(path)
        assert s.data_dir == "scripts-here"
        assert s.max_log_entries == 1000

    def test_non_object_raises_value_error(self, tmp_path: Path) -> None:
        """A JSON array is not a valid settings file."""
        path = tmp_path / "settings.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(ValueError):
            load_settings(path)
