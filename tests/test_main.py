"""Tests for the AutoScript CLI and component wiring.

The platform factory is patched to return a MockPlatform, so no desktop
session is needed.
"""

from __future__ import annotations

import argparse
import json
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import numpy as np
import pytest
from numpy.typing import NDArray

from autoscript.config.settings import Settings
from autoscript.core.script_storage import FileScriptStorage, InMemoryScriptStorage
from autoscript.main import _parse_handle, build_runner, main
from autoscript.models.execution import ExecutionStatus
from autoscript.models.script import AutomationScript, ScriptAction, ScriptStep
from autoscript.platform.interface import PlatformInterface


class MockPlatform(PlatformInterface):
    """Minimal platform recording clicks."""

    def __init__(self) -> None:
        self.clicks: list[tuple[int, int]] = []

    def capture_frame(self) -> NDArray[np.uint8]:
        return np.full((20, 30, 3), 200, dtype=np.uint8)

    def get_cursor_pos(self) -> tuple[int, int]:
        return (0, 0)

    def move_cursor(self, x: int, y: int) -> None:
        pass

    def click(self, x: int, y: int, button: str = "left") -> None:
        self.clicks.append((x, y))

    def double_click(self, x: int, y: int, button: str = "left") -> None:
        pass

    def mouse_down(self, button: str = "left") -> None:
        pass

    def mouse_up(self, button: str = "left") -> None:
        pass

    def type_text(self, text: str) -> None:
        pass

    def key_press(self, key: str) -> None:
        pass

    def get_screen_size(self) -> tuple[int, int]:
        return (30, 20)

    def get_platform_name(self) -> str:
        return "mock"


def _quick_script(script_id: str = "quick") -> AutomationScript:
    return AutomationScript(
        id=script_id,
        name="Quick",
        steps=[
            ScriptStep(
                id="a",
                type="action",
                name="Click",
                actions=[ScriptAction(type="click", parameters={"x": 3, "y": 4})],
            )
        ],
    )


@pytest.fixture()
def mock_platform() -> Iterator[MockPlatform]:
    platform = MockPlatform()
    with patch("autoscript.main.create_platform", return_value=platform):
        yield platform


# ==================================================================
# build_runner
# ==================================================================


class TestBuildRunner:
    """Component wiring."""

    def test_components_share_platform_and_settings(self) -> None:
        """Every component is built and the overrides are used."""
        platform = MockPlatform()
        storage = InMemoryScriptStorage()
        settings = Settings(click_settle_ms=0)
        runner = build_runner(settings, storage=storage, platform=platform)
        assert runner.platform is platform
        assert runner.storage is storage
        assert runner.settings is settings

    def test_default_storage_is_file_backed(self, tmp_path: Path) -> None:
        """Without a storage override, scripts live under data_dir."""
        runner = build_runner(
            Settings(data_dir=str(tmp_path)), platform=MockPlatform()
        )
        assert isinstance(runner.storage, FileScriptStorage)
        assert (tmp_path / "Scripts").is_dir()

    def test_runner_executes_script(self) -> None:
        """A wired runner can run a script end to end."""
        platform = MockPlatform()
        storage = InMemoryScriptStorage()
        storage.save_script(_quick_script())
        runner = build_runner(
            Settings(click_settle_ms=0), storage=storage, platform=platform
        )
        runner.executor.start_script("quick")
        assert runner.executor.wait_for_completion("quick", 5.0)
        state = runner.executor.get_execution_state("quick")
        assert state is not None
        assert state.status is ExecutionStatus.COMPLETED
        assert platform.clicks == [(3, 4)]


# ==================================================================
# CLI
# ==================================================================


class TestParseHandle:
    """--target-window parsing."""

    @pytest.mark.parametrize("text, value", [("0x1A2B", 0x1A2B), ("42", 42)])
    def test_valid(self, text: str, value: int) -> None:
        """Decimal and hex handles are accepted."""
        assert _parse_handle(text) == value

    def test_invalid(self) -> None:
        """Garbage raises an argparse error."""
        with pytest.raises(argparse.ArgumentTypeError):
            _parse_handle("window")


class TestListCommand:
    """autoscript list."""

    def test_empty(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """An empty data directory reports no scripts."""
        assert main(["--data-dir", str(tmp_path), "list"]) == 0
        assert "No scripts found." in capsys.readouterr().out

    def test_lists_saved_scripts(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Saved scripts are printed with their step and repeat counts."""
        FileScriptStorage(Settings(data_dir=str(tmp_path))).save_script(
            _quick_script()
        )
        assert main(["--data-dir", str(tmp_path), "list"]) == 0
        out = capsys.readouterr().out
        assert "quick" in out
        assert "Quick" in out
        assert "1 step(s)" in out
        assert "x1" in out

    def test_demo(self, capsys: pytest.CaptureFixture[str]) -> None:
        """--demo lists the built-in sample script."""
        assert main(["--demo", "list"]) == 0
        assert "sample-script-1" in capsys.readouterr().out


class TestRunCommand:
    """autoscript run."""

    def test_run_to_completion(
        self,
        tmp_path: Path,
        mock_platform: MockPlatform,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """A finished run prints its logs and status and exits 0."""
        FileScriptStorage(Settings(data_dir=str(tmp_path))).save_script(
            _quick_script()
        )
        assert main(["--data-dir", str(tmp_path), "run", "quick"]) == 0
        out = capsys.readouterr().out
        assert "Clicked at (3, 4)" in out
        assert "Script quick finished: completed after 1 repeat(s)" in out
        assert mock_platform.clicks == [(3, 4)]

    def test_unknown_script(
        self, tmp_path: Path, mock_platform: MockPlatform
    ) -> None:
        """Running a missing script exits 1."""
        assert main(["--data-dir", str(tmp_path), "run", "ghost"]) == 1

    def test_bad_target_window_rejected(self, tmp_path: Path) -> None:
        """argparse rejects an unparsable --target-window."""
        with pytest.raises(SystemExit):
            main(["--data-dir", str(tmp_path), "run", "x", "--target-window", "zz"])


class TestScreenshotCommand:
    """autoscript screenshot."""

    def test_saves_named_file(
        self,
        tmp_path: Path,
        mock_platform: MockPlatform,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """The capture is written under the configured directory."""
        shots = tmp_path / "shots"
        config = tmp_path / "settings.json"
        config.write_text(
            json.dumps({"screenshots_dir": str(shots)}), encoding="utf-8"
        )
        code = main(
            [
                "--config",
                str(config),
                "--data-dir",
                str(tmp_path / "data"),
                "screenshot",
                "--name",
                "desk",
            ]
        )
        assert code == 0
        assert (shots / "desk.png").exists()
        assert str(shots / "desk.png") in capsys.readouterr().out
