"""AutoScript main entry point.

Wires the platform driver, automation engine, screenshot service,
image recognition, script storage and execution service together and
exposes a small CLI to list, run and capture.

Typical usage::

    python -m autoscript.main list
    python -m autoscript.main run sample-script-1 --demo
    python -m autoscript.main run my-script --target-window 0x1A2B
    python -m autoscript.main screenshot --name before_login

Programmatic usage::

    from autoscript.main import build_runner

    runner = build_runner()
    runner.executor.start_script("sample-script-1")
    runner.executor.wait_for_completion("sample-script-1")
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, replace

from autoscript.config.settings import Settings, load_settings
from autoscript.core.automation_engine import AutomationEngine
from autoscript.core.errors import ScriptNotFoundError
from autoscript.core.image_recognition import ImageRecognitionService
from autoscript.core.screenshot_service import ScreenshotService
from autoscript.core.script_executor import ScriptExecutionService
from autoscript.core.script_storage import (
    FileScriptStorage,
    InMemoryScriptStorage,
    ScriptStorage,
)
from autoscript.models.execution import ExecutionLog, ExecutionStatus
from autoscript.platform.interface import PlatformInterface, create_platform

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


@dataclass
class AutoScriptRunner:
    """All wired components of a running AutoScript instance.

    Attributes:
        platform: OS-specific input/output driver.
        automation: Input injection with window targeting.
        screenshots: Screen capture to PNG bytes.
        recognizer: Template matcher.
        storage: Script and template persistence.
        executor: Script execution service.
        settings: Immutable application configuration.
    """

    platform: PlatformInterface
    automation: AutomationEngine
    screenshots: ScreenshotService
    recognizer: ImageRecognitionService
    storage: ScriptStorage
    executor: ScriptExecutionService
    settings: Settings


def build_runner(
    settings: Settings | None = None,
    storage: ScriptStorage | None = None,
    platform: PlatformInterface | None = None,
) -> AutoScriptRunner:
    """Create every component in dependency order.

    Args:
        settings: Optional settings override.  When ``None`` the
            default settings are used.
        storage: Optional storage override.  Defaults to
            ``FileScriptStorage`` rooted at ``settings.data_dir``.
        platform: Optional platform override.  Defaults to
            ``create_platform(settings.platform_name)``.

    Returns:
        A fully constructed ``AutoScriptRunner``.
    """
    if settings is None:
        settings = Settings()

    # 1. Platform
    if platform is None:
        platform = create_platform(settings.platform_name)
    logger.info("Platform: %s", platform.get_platform_name())

    # 2. Leaf services
    automation = AutomationEngine(platform, settings)
    screenshots = ScreenshotService(platform, settings)
    recognizer = ImageRecognitionService(screenshots, settings)
    if storage is None:
        storage = FileScriptStorage(settings)

    # 3. Execution service
    executor = ScriptExecutionService(
        storage=storage,
        automation=automation,
        screenshots=screenshots,
        recognizer=recognizer,
        settings=settings,
    )

    return AutoScriptRunner(
        platform=platform,
        automation=automation,
        screenshots=screenshots,
        recognizer=recognizer,
        storage=storage,
        executor=executor,
        settings=settings,
    )


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _parse_handle(text: str) -> int:
    """argparse type for window handles (decimal or ``0x`` hex)."""
    try:
        return int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid window handle: {text!r}"
        ) from None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="autoscript",
        description=(
            "AutoScript -- run desktop automation scripts made of "
            "image conditions and input actions."
        ),
    )
    parser.add_argument(
        "--config",
        "-c",
        default="",
        help="JSON settings file overlaid on the defaults.",
    )
    parser.add_argument(
        "--data-dir",
        default="",
        help="Directory holding Scripts/ and Templates/.",
    )
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Use in-memory storage seeded with the sample script.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging.",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List stored scripts.")

    run = sub.add_parser("run", help="Run a script until it ends.")
    run.add_argument("script_id", help="Id of the script to run.")
    run.add_argument(
        "--target-window",
        type=_parse_handle,
        default=None,
        help="Window handle to direct input at (overrides the script).",
    )

    shot = sub.add_parser("screenshot", help="Capture the screen to a file.")
    shot.add_argument(
        "--name",
        default="",
        help="File name (default: screenshot_<timestamp>.png).",
    )
    return parser


def _resolve_settings(args: argparse.Namespace) -> Settings:
    settings = load_settings(args.config) if args.config else Settings()
    if args.data_dir:
        settings = replace(settings, data_dir=args.data_dir)
    return settings


def _make_storage(
    settings: Settings, demo: bool
) -> ScriptStorage:
    if demo:
        return InMemoryScriptStorage(seed_sample=True)
    return FileScriptStorage(settings)


def _print_log(entry: ExecutionLog) -> None:
    print(
        f"{entry.timestamp:%H:%M:%S} [{entry.level.value.upper():<7}] "
        f"{entry.message}",
        flush=True,
    )


def _cmd_list(storage: ScriptStorage) -> int:
    scripts = storage.get_all_scripts()
    if not scripts:
        print("No scripts found.")
        return 0
    for script in scripts:
        repeat = (
            "infinite"
            if script.is_infinite_repeat
            else f"x{script.repeat_count}"
        )
        print(
            f"{script.id:<38} {script.name:<30} "
            f"{len(script.steps):>3} step(s)  {repeat}"
        )
    return 0


def _cmd_run(
    runner: AutoScriptRunner,
    script_id: str,
    target_window: int | None,
) -> int:
    executor = runner.executor
    if target_window is not None:
        executor.override_target_window(target_window)

    executor.log_generated.subscribe(_print_log)
    try:
        executor.start_script(script_id)
    except ScriptNotFoundError as exc:
        logger.error("%s", exc)
        return 1

    try:
        while not executor.wait_for_completion(script_id, timeout=0.5):
            pass
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping script %s", script_id)
        executor.stop_script(script_id)
        executor.wait_for_completion(script_id, timeout=5.0)

    state = executor.get_execution_state(script_id)
    if state is None:
        return 1
    print(
        f"Script {script_id} finished: {state.status.value} "
        f"after {state.current_repeat} repeat(s)"
    )
    return (
        0
        if state.status
        in (ExecutionStatus.COMPLETED, ExecutionStatus.STOPPED)
        else 1
    )


def _cmd_screenshot(runner: AutoScriptRunner, name: str) -> int:
    data = runner.screenshots.capture_full_screen()
    path = runner.screenshots.save_screenshot(data, name)
    print(path)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Parse CLI arguments and dispatch the chosen command.

    Returns:
        Process exit status.
    """
    args = _build_parser().parse_args(argv)

    # -- Logging setup ---------------------------------------------------
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    settings = _resolve_settings(args)
    storage = _make_storage(settings, args.demo)

    if args.command == "list":
        return _cmd_list(storage)

    runner = build_runner(settings=settings, storage=storage)
    try:
        if args.command == "run":
            return _cmd_run(runner, args.script_id, args.target_window)
        return _cmd_screenshot(runner, args.name)
    finally:
        runner.executor.shutdown()


if __name__ == "__main__":
    sys.exit(main())
